"""Shared configuration for the anchoring package."""

import re

# Characters of context captured on each side of a quote
DEFAULT_CONTEXT_LENGTH = 32

# Edit budget for a quote search, as a fraction of the quote length
MAX_ERROR_RATIO = 0.2

# Upper bound on quote errors for the context-scored matcher
MATCH_QUOTE_MAX_ERRORS = 256

# Class of the per-page element holding a PDF page's rendered text
TEXT_LAYER_CLASS = "textLayer"

# Marker element used while a page's text layer is not rendered yet
PLACEHOLDER_CLASS = "annotator-placeholder"
PLACEHOLDER_TEXT = "Loading annotations…"

# One `tag[n]` step of a container path (1-based same-tag sibling index)
XPATH_STEP_PATTERN = re.compile(r"^([a-zA-Z][-a-zA-Z0-9]*)\[([0-9]+)\]$")


def validate_context_length(context_length: int) -> None:
    """Validate the number of context characters for a quote.

    Args:
        context_length: Characters of prefix/suffix to capture

    Raises:
        ValueError: If the length is negative
    """
    if context_length < 0:
        raise ValueError(
            f"Invalid context length: {context_length}. Expected a value >= 0"
        )


def validate_offsets(start: int, end: int) -> None:
    """Validate a pair of character offsets.

    Args:
        start: Start offset
        end: End offset

    Raises:
        ValueError: If the offsets are negative or out of order
    """
    if start < 0 or end < start:
        raise ValueError(
            f"Invalid offsets: start={start}, end={end}. Expected 0 <= start <= end"
        )
