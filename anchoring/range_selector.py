"""
Convert between host ranges and `RangeSelector` selectors.

A range selector stores the start and end containers as simple XPaths of
the form ``/tag[n]/.../tag[n]`` relative to the anchoring root, together
with character offsets into the text of those containers.

Paths are resolved one step at a time: ``tag[n]`` selects the n-th child
element of the current element with that tag, the same element a CSS
``tag:nth-of-type(n)`` child selector would match.
"""

from __future__ import annotations

from lxml import etree

from anchoring.config import XPATH_STEP_PATTERN
from anchoring.dom import (
    HostRange,
    Node,
    contains,
    is_element,
    iter_text_nodes,
    local_name,
    parent_node,
)
from anchoring.errors import AnchoringError, OutsideRootError
from anchoring.logging_config import logger
from anchoring.selectors import RangeSelector
from anchoring.text_range import IgnoreParent, Position, TextRange

__all__ = ["from_range", "node_from_xpath", "to_range", "xpath_from_node"]


def _same_tag_index(elem: etree._Element) -> int:
    """Return the 1-based index of `elem` among siblings with the same tag."""
    return 1 + sum(1 for _ in elem.itersiblings(elem.tag, preceding=True))


def xpath_from_node(root: etree._Element, node: Node) -> str:
    """
    Generate the path from `root` to a descendant element.

    Text nodes are replaced by their parent element.

    Raises:
        OutsideRootError: If the node is not inside `root`
    """
    if not contains(root, node):
        raise OutsideRootError("range container")

    elem = node if is_element(node) else parent_node(node)
    steps: list[str] = []
    while elem is not root:
        steps.append(f"{local_name(elem)}[{_same_tag_index(elem)}]")
        elem = elem.getparent()
    return "/" + "/".join(reversed(steps))


def _nth_child_of_type(elem: etree._Element, tag: str, index: int) -> etree._Element | None:
    position = 0
    for child in elem.iterchildren():
        if is_element(child) and local_name(child) == tag:
            position += 1
            if position == index:
                return child
    return None


def node_from_xpath(root: etree._Element, xpath: str) -> etree._Element | None:
    """
    Resolve a path relative to `root` to an element.

    Returns:
        The element, or None if the path is unsupported or matches nothing
    """
    elem: etree._Element | None = root
    for step in xpath.split("/"):
        if not step:
            continue
        match = XPATH_STEP_PATTERN.match(step)
        if match is None:
            return None
        tag, index = match.groups()
        elem = _nth_child_of_type(elem, tag, int(index))
        if elem is None:
            return None
    return elem


def _resolve_boundary(elem: etree._Element, offset: int) -> tuple[Node, int]:
    # Offset 0 in an element without text is the start of the element itself
    if offset == 0 and next(iter_text_nodes(elem), None) is None:
        return elem, 0
    return Position(elem, offset).resolve()


def to_range(root: etree._Element, selector: RangeSelector) -> HostRange | None:
    """
    Resolve a range selector to a host range inside `root`.

    Returns:
        The host range, or None if either container path does not resolve
        or either offset is not valid within its container
    """
    start_elem = node_from_xpath(root, selector.start_container)
    end_elem = node_from_xpath(root, selector.end_container)
    if start_elem is None or end_elem is None:
        logger.debug(
            f"Container not found: {selector.start_container} / {selector.end_container}"
        )
        return None

    try:
        start_node, start_offset = _resolve_boundary(start_elem, selector.start_offset)
        end_node, end_offset = _resolve_boundary(end_elem, selector.end_offset)
    except AnchoringError as e:
        logger.debug(f"Range offsets invalid: {e}")
        return None

    return HostRange(start_node, start_offset, end_node, end_offset)


def from_range(
    root: etree._Element,
    host_range: HostRange,
    ignore_parent: IgnoreParent | None = None,
) -> RangeSelector:
    """
    Describe a host range as a range selector relative to `root`.

    The range is first shrunk to the text it contains, so containers are
    always the closest elements wrapping text: empty elements at the edges
    of the range never become containers.

    Args:
        root: Root element the paths are relative to
        host_range: Range to describe
        ignore_parent: Predicate for wrapper elements to skip when choosing
            containers (e.g. highlight elements)

    Raises:
        OutsideRootError: If the range is not inside `root`
    """
    shrunk = TextRange.from_range(host_range).to_range()
    text_range = TextRange.from_range(shrunk, ignore_parent)

    start_container = xpath_from_node(root, text_range.start.element)
    end_container = xpath_from_node(root, text_range.end.element)

    return RangeSelector(
        start_container=start_container,
        start_offset=text_range.start.offset,
        end_container=end_container,
        end_offset=text_range.end.offset,
    )
