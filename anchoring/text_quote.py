"""
Convert between text quotes and offsets within a text.

`from_text_position` and `to_text_position` work on plain strings;
`from_range` and `to_range` apply them to the text content of an element.

Locating a quote is tolerant of edits: the quote may differ from the text
by up to 20% of its length, and when it occurs several times the prefix
and suffix decide which occurrence is meant.
"""

from __future__ import annotations

from lxml import etree

from anchoring.config import DEFAULT_CONTEXT_LENGTH, MAX_ERROR_RATIO
from anchoring.dom import HostRange, text_content
from anchoring.errors import QuoteNotFoundError
from anchoring.matcher import StringMatch, search
from anchoring.selectors import TextQuoteSelector
from anchoring.text_position import from_range as position_from_range
from anchoring.text_range import TextRange

__all__ = ["from_range", "from_text_position", "to_range", "to_text_position"]


def from_text_position(
    text: str, start: int, end: int, context_length: int = DEFAULT_CONTEXT_LENGTH
) -> TextQuoteSelector:
    """
    Convert a text position to a quote including the surrounding context.

    The prefix and suffix are shorter than `context_length` when the quote
    is near the start or end of `text`.
    """
    return TextQuoteSelector(
        exact=text[start:end],
        prefix=text[max(0, start - context_length) : start],
        suffix=text[end : end + context_length],
    )


def to_text_position(
    text: str,
    exact: str,
    prefix: str = "",
    suffix: str = "",
    hint: int | None = None,
) -> tuple[int, int]:
    """
    Locate a quote within a text.

    Candidates for `exact` are found allowing errors up to 20% of its
    length. Each candidate is then ranked by how well ``prefix + exact +
    suffix`` matches the text around it; the candidate with the fewest
    context errors wins. Ties go to the candidate nearest `hint` when one
    is given, then to the earliest candidate.

    Args:
        text: Text to search
        exact: The quote to find
        prefix: Expected text preceding the quote
        suffix: Expected text following the quote
        hint: Expected offset of the quote

    Returns:
        (start, end) offsets of the quote in `text`

    Raises:
        QuoteNotFoundError: If no candidate is within the error budget
    """
    matches = search(text, exact, len(exact) * MAX_ERROR_RATIO)
    if not matches:
        raise QuoteNotFoundError(exact)

    pattern = prefix + exact + suffix

    def context_errors(match: StringMatch) -> int:
        nearby = text[max(0, match.start - len(prefix)) : match.end + len(suffix)]
        # Allowing len(pattern) errors means the search always finds a match
        scores = [m.errors for m in search(nearby, pattern, len(pattern))]
        return min(scores, default=len(pattern))

    def rank(item: tuple[int, StringMatch]) -> tuple[int, int, int]:
        index, match = item
        distance = abs(match.start - hint) if hint is not None else 0
        return context_errors(match), distance, index

    _, best = min(enumerate(matches), key=rank)
    return best.start, best.end


def from_range(
    root: etree._Element,
    host_range: HostRange,
    context_length: int = DEFAULT_CONTEXT_LENGTH,
) -> TextQuoteSelector:
    """
    Describe a host range as a quote of the text of `root`.

    Raises:
        OutsideRootError: If the range is not inside `root`
    """
    position = position_from_range(root, host_range)
    return from_text_position(
        text_content(root), position.start, position.end, context_length
    )


def to_range(
    root: etree._Element, selector: TextQuoteSelector, hint: int | None = None
) -> HostRange:
    """
    Resolve a quote selector to a host range inside `root`.

    Raises:
        QuoteNotFoundError: If the quote cannot be found
    """
    start, end = to_text_position(
        text_content(root), selector.exact, selector.prefix, selector.suffix, hint
    )
    return TextRange.from_offsets(root, start, end).to_range()
