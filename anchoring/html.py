"""
Anchoring for ordinary (non-paginated) documents.

`anchor` converts a set of selectors into a host range, and `describe`
performs the inverse. Anchoring walks an ordered list of strategies, one
per selector kind, and returns the first range that resolves:

1. RangeSelector, verified against the quote if there is one
2. TextPositionSelector, verified against the quote if there is one
3. TextQuoteSelector, using the position's start as a hint (accepted as is)

The order is data (`DEFAULT_STRATEGIES`), so callers can inspect or
replace it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from lxml import etree

from anchoring import range_selector, text_position, text_quote
from anchoring.config import DEFAULT_CONTEXT_LENGTH
from anchoring.dom import HostRange
from anchoring.errors import AnchoringError, AnchoringFailedError, QuoteMismatchError
from anchoring.logging_config import logger
from anchoring.selectors import Selector, SelectorSet

__all__ = [
    "AnchorOutcome",
    "AnchorStrategy",
    "DEFAULT_STRATEGIES",
    "DESCRIBERS",
    "anchor",
    "describe",
]


@dataclass(frozen=True)
class AnchorOutcome:
    """Result of one strategy: a range, or the reason it missed."""

    strategy: str
    range: HostRange | None = None
    reason: str | None = None

    @property
    def anchored(self) -> bool:
        return self.range is not None


@dataclass(frozen=True)
class AnchorStrategy:
    """One step of the anchoring fallback chain."""

    name: str
    applies: Callable[[SelectorSet], bool]
    """Whether the selector set carries what this strategy needs."""

    resolve: Callable[[etree._Element, SelectorSet], HostRange | None]
    """Resolve the selectors; may return None or raise AnchoringError on a miss."""

    verify_quote: bool = True
    """Reject the range if its text differs from the quote selector's `exact`."""

    def attempt(self, root: etree._Element, selectors: SelectorSet) -> AnchorOutcome | None:
        """Run the strategy, or return None if it does not apply."""
        if not self.applies(selectors):
            return None

        try:
            host_range = self.resolve(root, selectors)
        except AnchoringError as e:
            return AnchorOutcome(self.name, reason=str(e))
        if host_range is None:
            return AnchorOutcome(self.name, reason="selector did not resolve")

        quote = selectors.quote
        if self.verify_quote and quote is not None and quote.exact:
            text = str(host_range)
            if text != quote.exact:
                return AnchorOutcome(
                    self.name, reason=str(QuoteMismatchError(quote.exact, text))
                )

        return AnchorOutcome(self.name, range=host_range)


def _resolve_range(root: etree._Element, selectors: SelectorSet) -> HostRange | None:
    return range_selector.to_range(root, selectors.range)


def _resolve_position(root: etree._Element, selectors: SelectorSet) -> HostRange:
    return text_position.to_range(root, selectors.position)


def _resolve_quote(root: etree._Element, selectors: SelectorSet) -> HostRange:
    hint = selectors.position.start if selectors.position is not None else None
    return text_quote.to_range(root, selectors.quote, hint=hint)


DEFAULT_STRATEGIES: tuple[AnchorStrategy, ...] = (
    AnchorStrategy(
        name="RangeSelector",
        applies=lambda s: s.range is not None,
        resolve=_resolve_range,
    ),
    AnchorStrategy(
        name="TextPositionSelector",
        applies=lambda s: s.position is not None,
        resolve=_resolve_position,
    ),
    AnchorStrategy(
        name="TextQuoteSelector",
        applies=lambda s: s.quote is not None,
        resolve=_resolve_quote,
        verify_quote=False,
    ),
)


def anchor(
    root: etree._Element,
    selectors: Iterable[Selector | Mapping[str, Any]],
    strategies: Iterable[AnchorStrategy] = DEFAULT_STRATEGIES,
) -> HostRange:
    """
    Anchor a set of selectors to a range inside `root`.

    Args:
        root: Root element of the anchoring context
        selectors: Selector models or wire-format dicts, in any order
        strategies: Fallback chain, tried in order

    Returns:
        Host range for the first strategy that resolves

    Raises:
        AnchoringFailedError: If no strategy resolved
    """
    selector_set = SelectorSet.from_selectors(selectors)
    reasons: list[str] = []

    with logger.indent_block("Anchoring selectors"):
        for strategy in strategies:
            outcome = strategy.attempt(root, selector_set)
            if outcome is None:
                continue
            if outcome.anchored:
                logger.debug(f"{strategy.name}: anchored")
                return outcome.range
            logger.debug(f"{strategy.name}: {outcome.reason}")
            reasons.append(f"{strategy.name}: {outcome.reason}")

    raise AnchoringFailedError(reasons)


DESCRIBERS: tuple[Callable[[etree._Element, HostRange, int], Selector], ...] = (
    lambda root, r, _: range_selector.from_range(root, r),
    lambda root, r, _: text_position.from_range(root, r),
    text_quote.from_range,
)


def describe(
    root: etree._Element,
    host_range: HostRange,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
) -> list[Selector]:
    """
    Describe a range inside `root` as a list of selectors.

    Each selector kind is produced independently; kinds which cannot
    describe the range are left out.
    """
    result: list[Selector] = []
    for describer in DESCRIBERS:
        try:
            result.append(describer(root, host_range, context_length))
        except AnchoringError as e:
            logger.debug(f"Skipping selector kind: {e}")
    return result
