"""
Convert between host ranges and `TextPositionSelector` offsets.

Positions are character offsets into the text content of the anchoring
root. They are cheap to resolve but do not tolerate edits: any insertion or
deletion before the offsets silently shifts them, so the orchestrator
verifies the resolved text against a quote selector when one is present.
"""

from __future__ import annotations

from lxml import etree

from anchoring.dom import HostRange, document_root, text_content, text_offset
from anchoring.selectors import TextPositionSelector
from anchoring.text_range import TextRange

__all__ = ["clamped_offsets", "from_range", "to_range"]


def from_range(root: etree._Element, host_range: HostRange) -> TextPositionSelector:
    """
    Describe a host range as offsets into the text of `root`.

    Raises:
        OutsideRootError: If the range is not inside `root`
    """
    text_range = TextRange.from_range(host_range).relative_to(root)
    return TextPositionSelector(start=text_range.start.offset, end=text_range.end.offset)


def to_range(root: etree._Element, selector: TextPositionSelector) -> HostRange:
    """
    Resolve a position selector to a host range inside `root`.

    Raises:
        InvalidOffsetError: If an offset is negative
        OffsetExceedsTextLengthError: If an offset is past the end of the text
    """
    return TextRange.from_offsets(root, selector.start, selector.end).to_range()


def clamped_offsets(root: etree._Element, host_range: HostRange) -> tuple[int, int]:
    """
    Return the range's offsets within `root`, clamped to `root`'s text.

    A range which starts before `root` is treated as starting at offset 0
    and one which ends after `root` as ending at the end of its text.
    """
    doc = document_root(root)
    start, end = host_range.text_offsets(doc)
    root_start = text_offset(doc, root, 0)
    length = len(text_content(root))

    def clamp(offset: int) -> int:
        return min(max(offset - root_start, 0), length)

    return clamp(start), clamp(end)
