"""Text offset model.

A `Position` names a location as a character offset into the text content
of an element rather than as a (node, local offset) pair. Positions survive
DOM changes which split, merge or re-wrap text nodes without changing the
element's text, such as inserting highlight wrappers.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from lxml import etree

from anchoring.dom import (
    HostRange,
    Node,
    TextNode,
    child_nodes,
    contains,
    is_element,
    iter_text_nodes,
    next_text_node,
    node_text_length,
    previous_siblings_text_length,
    previous_text_node,
)
from anchoring.errors import (
    InvalidOffsetError,
    NodeNotFoundError,
    OffsetExceedsTextLengthError,
    OutsideRootError,
)

__all__ = ["IgnoreParent", "Position", "ResolveDirection", "TextRange"]

IgnoreParent = Callable[[etree._Element], bool]


class ResolveDirection(Enum):
    """Where to look for text when resolving offset 0 in an element without text."""

    FORWARDS = 1
    BACKWARDS = 2


def _resolve_offsets(
    elem: etree._Element, *offsets: int
) -> list[tuple[TextNode, int]]:
    """Resolve ascending character offsets within `elem` to text node positions.

    Offsets at the boundary between two text nodes resolve to the start of the
    node beginning at the boundary.
    """
    pending = list(offsets)
    results: list[tuple[TextNode, int]] = []

    nodes = iter_text_nodes(elem)
    current = next(nodes, None)
    text_node: TextNode | None = None
    length = 0

    while pending and current is not None:
        text_node = current
        if length + len(text_node.data) > pending[0]:
            results.append((text_node, pending.pop(0) - length))
        else:
            length += len(text_node.data)
            current = next(nodes, None)

    # Offset equal to the element's text length ends in the last node
    while pending and text_node is not None and length == pending[0]:
        results.append((text_node, len(text_node.data)))
        pending.pop(0)

    if pending:
        raise OffsetExceedsTextLengthError(pending[0], length)

    return results


class Position:
    """A character offset into the text content of an element."""

    def __init__(self, element: etree._Element, offset: int) -> None:
        if offset < 0:
            raise InvalidOffsetError(offset)
        self.element = element
        self.offset = offset

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.element is other.element and self.offset == other.offset

    def __hash__(self) -> int:
        return hash((id(self.element), self.offset))

    def __repr__(self) -> str:
        return f"Position({self.element.tag}, {self.offset})"

    def relative_to(self, parent: etree._Element) -> Position:
        """Return a copy of this position relative to an ancestor element.

        Raises:
            OutsideRootError: If `parent` is not an ancestor of the element
        """
        if not contains(parent, self.element):
            raise OutsideRootError("parent is not an ancestor of current element")

        elem = self.element
        offset = self.offset
        while elem is not parent:
            offset += previous_siblings_text_length(elem)
            elem = elem.getparent()
        return Position(elem, offset)

    def resolve(
        self, direction: ResolveDirection | None = None
    ) -> tuple[TextNode, int]:
        """Resolve the position to a text node and an offset within that node.

        If the element has no text and the offset is 0, `direction` chooses
        the nearest text node after or before the element. Without a
        direction this case fails like any other out-of-range offset.

        Raises:
            OffsetExceedsTextLengthError: If the offset is past the element's text
        """
        try:
            return _resolve_offsets(self.element, self.offset)[0]
        except OffsetExceedsTextLengthError:
            if self.offset != 0 or direction is None:
                raise
            if direction is ResolveDirection.FORWARDS:
                text_node = next_text_node(self.element)
                if text_node is None:
                    raise
                return text_node, 0
            text_node = previous_text_node(self.element)
            if text_node is None:
                raise
            return text_node, len(text_node.data)

    @classmethod
    def from_point(
        cls,
        node: Node,
        offset: int,
        ignore_parent: IgnoreParent | None = None,
    ) -> Position:
        """Convert a boundary point into a position within an element.

        The position is relative to the nearest ancestor element for which
        `ignore_parent` returns False (the container itself for elements, the
        parent for text nodes when no predicate is given).

        Raises:
            InvalidOffsetError: If the offset is out of range for the node
            NodeNotFoundError: If no qualifying ancestor exists
        """
        if isinstance(node, TextNode):
            if offset < 0 or offset > len(node.data):
                raise InvalidOffsetError(offset, "Text node offset is out of range")
            elem = node.parent
            if elem is None:
                raise NodeNotFoundError("parent of text node")
            text_offset = previous_siblings_text_length(node) + offset
        elif is_element(node):
            children = child_nodes(node)
            if offset < 0 or offset > len(children):
                raise InvalidOffsetError(offset, "Child node offset is out of range")
            elem = node
            text_offset = sum(node_text_length(child) for child in children[:offset])
        else:
            raise InvalidOffsetError(offset, "Point is not in an element or text node")

        if ignore_parent is not None:
            while ignore_parent(elem):
                text_offset += previous_siblings_text_length(elem)
                parent = elem.getparent()
                if parent is None:
                    raise NodeNotFoundError("ancestor for boundary point")
                elem = parent

        return cls(elem, text_offset)


class TextRange:
    """A region of a document as a (start, end) pair of `Position` points.

    Changes to the DOM which do not affect the text content of the range's
    elements do not affect the text content of the range itself.
    """

    def __init__(self, start: Position, end: Position) -> None:
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"TextRange({self.start!r}, {self.end!r})"

    def relative_to(self, element: etree._Element) -> TextRange:
        return TextRange(
            self.start.relative_to(element),
            self.end.relative_to(element),
        )

    def to_range(self) -> HostRange:
        """Resolve to a host range which starts and ends in text nodes.

        ``TextRange.from_range(r).to_range()`` therefore "shrinks" a range
        to the text it contains.
        """
        if (
            self.start.element is self.end.element
            and self.start.offset <= self.end.offset
        ):
            (start_node, start_offset), (end_node, end_offset) = _resolve_offsets(
                self.start.element, self.start.offset, self.end.offset
            )
        else:
            start_node, start_offset = self.start.resolve(ResolveDirection.FORWARDS)
            end_node, end_offset = self.end.resolve(ResolveDirection.BACKWARDS)

        return HostRange(start_node, start_offset, end_node, end_offset)

    @classmethod
    def from_range(
        cls, host_range: HostRange, ignore_parent: IgnoreParent | None = None
    ) -> TextRange:
        start = Position.from_point(
            host_range.start_container, host_range.start_offset, ignore_parent
        )
        end = Position.from_point(
            host_range.end_container, host_range.end_offset, ignore_parent
        )
        return cls(start, end)

    @classmethod
    def from_offsets(cls, root: etree._Element, start: int, end: int) -> TextRange:
        """Return a range from the `start`th to `end`th characters in `root`."""
        return cls(Position(root, start), Position(root, end))
