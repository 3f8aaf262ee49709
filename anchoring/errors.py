"""Exceptions raised while anchoring or describing selectors.

Every subclass of `AnchoringError` is an expected miss: the document may have
been edited since the selector was created, so callers treat these as
"try the next strategy" rather than as bugs.
"""

from __future__ import annotations


class AnchoringError(Exception):
    """Base class for expected anchoring misses."""


class InvalidOffsetError(AnchoringError):
    """Raised when a character or child offset is out of range."""

    def __init__(self, offset: int, reason: str = "Offset is invalid") -> None:
        self.offset = offset
        super().__init__(f"{reason}: {offset}")


class OffsetExceedsTextLengthError(AnchoringError):
    """Raised when an offset points past the end of an element's text."""

    def __init__(self, offset: int, text_length: int) -> None:
        self.offset = offset
        self.text_length = text_length
        super().__init__(
            f"Offset {offset} exceeds text length {text_length}"
        )


class OutsideRootError(AnchoringError):
    """Raised when a node is not a descendant of the anchoring root."""

    def __init__(self, context: str = "") -> None:
        msg = "Node is not contained within root"
        if context:
            msg = f"{msg} ({context})"
        super().__init__(msg)


class NodeNotFoundError(AnchoringError):
    """Raised when a structural path or ancestor cannot be resolved."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Unable to resolve {description}")


class QuoteNotFoundError(AnchoringError):
    """Raised when no approximate match for a quote exists."""

    def __init__(self, exact: str) -> None:
        self.exact = exact
        super().__init__("Quote not found")


class QuoteMismatchError(AnchoringError):
    """Raised when a resolved range does not contain the expected quote."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Quote mismatch: expected {expected!r}, got {actual!r}")


class NoTextSelectedError(AnchoringError):
    """Raised when a range covers no text-layer text."""

    def __init__(self) -> None:
        super().__init__("No text is selected")


class CrossPageSelectionError(AnchoringError):
    """Raised when a range spans the text of more than one page."""

    def __init__(self, page_count: int) -> None:
        self.page_count = page_count
        super().__init__(
            f"Selecting across page breaks is not supported ({page_count} pages)"
        )


class AnchoringFailedError(AnchoringError):
    """Raised when every applicable selector failed to anchor."""

    def __init__(self, reasons: list[str] | None = None) -> None:
        self.reasons = list(reasons or [])
        msg = "Unable to anchor"
        if self.reasons:
            msg = f"{msg}: " + "; ".join(self.reasons)
        super().__init__(msg)
