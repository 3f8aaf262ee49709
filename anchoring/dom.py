"""DOM-style view over lxml element trees.

lxml keeps character data on elements instead of in separate text nodes:
``element.text`` is the text before the element's first child, and
``child.tail`` is the text that follows ``child`` inside its parent. Anchoring
reasons about text nodes and boundary points, so this module names each run
of character data with a `TextNode` and exposes the small set of tree
operations the anchoring code needs.

Element boundary offsets follow the DOM convention: an offset ``k`` inside an
element refers to the point before its ``k``-th child node, where child
nodes are the list returned by `child_nodes`.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

from lxml import etree

from anchoring.errors import OutsideRootError

__all__ = [
    "HostRange",
    "Node",
    "TextNode",
    "child_nodes",
    "common_ancestor",
    "contains",
    "document_root",
    "has_class",
    "is_element",
    "iter_text_nodes",
    "local_name",
    "node_text_length",
    "parent_node",
    "previous_siblings_text_length",
    "remove_node",
    "text_content",
    "text_offset",
]


@dataclass(frozen=True)
class TextNode:
    """A run of character data stored on an lxml element."""

    owner: etree._Element
    """Element holding the text."""

    is_tail: bool = False
    """True for ``owner.tail`` (text after the owner), False for ``owner.text``."""

    @property
    def data(self) -> str:
        return (self.owner.tail if self.is_tail else self.owner.text) or ""

    @property
    def parent(self) -> etree._Element | None:
        """Element whose child list contains this text run."""
        return self.owner.getparent() if self.is_tail else self.owner

    def __repr__(self) -> str:
        kind = "tail" if self.is_tail else "text"
        return f"TextNode({local_name(self.owner)}.{kind}={self.data!r})"


Node = Union[etree._Element, TextNode]


def is_element(node: object) -> bool:
    """Return True for real elements (not comments, PIs or text runs)."""
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def local_name(elem: etree._Element) -> str:
    """Get tag name without namespace prefix."""
    tag = elem.tag
    if isinstance(tag, str) and "}" in tag:
        return tag.split("}")[-1]
    return tag if isinstance(tag, str) else ""


def has_class(elem: etree._Element, class_name: str) -> bool:
    return class_name in (elem.get("class") or "").split()


def child_nodes(elem: etree._Element) -> list[Node]:
    """Return the DOM-style child node list of an element."""
    nodes: list[Node] = []
    if not is_element(elem):
        return nodes
    if elem.text:
        nodes.append(TextNode(elem))
    for child in elem:
        nodes.append(child)
        if child.tail:
            nodes.append(TextNode(child, is_tail=True))
    return nodes


def parent_node(node: Node) -> etree._Element | None:
    if isinstance(node, TextNode):
        return node.parent
    return node.getparent()


def iter_text_nodes(elem: etree._Element) -> Iterator[TextNode]:
    """Yield the text runs inside an element in document order.

    Comment and processing-instruction content is skipped, but their tails
    are text of the parent. The element's own tail is outside the element.
    """
    if not is_element(elem):
        return
    if elem.text:
        yield TextNode(elem)
    for child in elem:
        yield from iter_text_nodes(child)
        if child.tail:
            yield TextNode(child, is_tail=True)


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield a node and all of its descendants in document order."""
    yield node
    if is_element(node):
        for child in child_nodes(node):
            yield from iter_nodes(child)


def text_content(elem: etree._Element) -> str:
    return "".join(node.data for node in iter_text_nodes(elem))


def node_text_length(node: Node) -> int:
    """Return the length of the text contributed by a child node."""
    if isinstance(node, TextNode):
        return len(node.data)
    if is_element(node):
        return len(text_content(node))
    return 0


def previous_siblings_text_length(node: Node) -> int:
    """Return the total length of the text of all previous siblings of a node."""
    parent = parent_node(node)
    if parent is None:
        return 0
    length = 0
    for sibling in child_nodes(parent):
        if sibling == node:
            break
        length += node_text_length(sibling)
    return length


def child_index(node: Node) -> int:
    """Return the index of a node within its parent's child node list."""
    parent = parent_node(node)
    if parent is None:
        raise ValueError("Node has no parent")
    for index, sibling in enumerate(child_nodes(parent)):
        if sibling == node:
            return index
    raise ValueError("Node not found in parent")


def contains(root: etree._Element, node: Node) -> bool:
    """Return True if `node` is `root` or one of its descendants."""
    current: Node | None = node
    while current is not None:
        if current is root:
            return True
        current = parent_node(current)
    return False


def document_root(node: Node) -> etree._Element:
    elem = node.owner if isinstance(node, TextNode) else node
    return elem.getroottree().getroot()


def _ancestors(node: Node) -> list[etree._Element]:
    chain: list[etree._Element] = []
    current = node if is_element(node) else parent_node(node)
    while current is not None:
        chain.append(current)
        current = current.getparent()
    return chain


def common_ancestor(first: Node, second: Node) -> etree._Element | None:
    """Return the deepest element containing both nodes."""
    first_chain = _ancestors(first)
    for candidate in _ancestors(second):
        if any(candidate is elem for elem in first_chain):
            return candidate
    return None


def next_text_node(elem: etree._Element) -> TextNode | None:
    """Return the first text node after the start of `elem` in document order."""
    nodes = list(iter_nodes(document_root(elem)))
    index = next(i for i, node in enumerate(nodes) if node is elem)
    for node in nodes[index + 1 :]:
        if isinstance(node, TextNode):
            return node
    return None


def previous_text_node(elem: etree._Element) -> TextNode | None:
    """Return the last text node before the start of `elem` in document order."""
    nodes = list(iter_nodes(document_root(elem)))
    index = next(i for i, node in enumerate(nodes) if node is elem)
    for node in reversed(nodes[:index]):
        if isinstance(node, TextNode):
            return node
    return None


def remove_node(elem: etree._Element) -> None:
    """Detach an element from its parent, keeping the text that follows it."""
    parent = elem.getparent()
    if parent is None:
        return
    tail = elem.tail
    if tail:
        previous = elem.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    parent.remove(elem)


def text_offset(root: etree._Element, container: Node, offset: int) -> int:
    """Convert a boundary point to a character offset into `root`'s text.

    Raises:
        OutsideRootError: If the container is not inside `root`
    """
    if isinstance(container, TextNode):
        total = offset
    else:
        total = sum(node_text_length(child) for child in child_nodes(container)[:offset])

    node: Node = container
    while node is not root:
        parent = parent_node(node)
        if parent is None:
            raise OutsideRootError("boundary point")
        total += previous_siblings_text_length(node)
        node = parent
    return total


@dataclass
class HostRange:
    """A range between two boundary points of an lxml tree.

    This is the boundary type handed to and returned from the host: all
    persistent reasoning happens on `anchoring.text_range.TextRange`.
    """

    start_container: Node
    start_offset: int
    end_container: Node
    end_offset: int

    @classmethod
    def select_node_contents(cls, elem: etree._Element) -> HostRange:
        return cls(elem, 0, elem, len(child_nodes(elem)))

    @classmethod
    def select_node(cls, node: Node) -> HostRange:
        """Create a range starting before and ending after `node`."""
        parent = parent_node(node)
        if parent is None:
            raise ValueError("Node has no parent")
        index = child_index(node)
        return cls(parent, index, parent, index + 1)

    def set_start(self, node: Node, offset: int) -> None:
        self.start_container = node
        self.start_offset = offset

    def set_end(self, node: Node, offset: int) -> None:
        self.end_container = node
        self.end_offset = offset

    def set_start_before(self, node: Node) -> None:
        self.set_start(parent_node(node), child_index(node))

    def set_end_after(self, node: Node) -> None:
        self.set_end(parent_node(node), child_index(node) + 1)

    @property
    def collapsed(self) -> bool:
        return (
            self.start_container == self.end_container
            and self.start_offset == self.end_offset
        )

    @property
    def common_ancestor_container(self) -> etree._Element | None:
        return common_ancestor(self.start_container, self.end_container)

    def text_offsets(self, root: etree._Element | None = None) -> tuple[int, int]:
        """Return the boundaries as offsets into the text of `root`.

        Defaults to the root of the document containing the range.
        """
        if root is None:
            root = document_root(self.start_container)
        start = text_offset(root, self.start_container, self.start_offset)
        end = text_offset(root, self.end_container, self.end_offset)
        return start, end

    def __str__(self) -> str:
        root = document_root(self.start_container)
        start, end = self.text_offsets(root)
        if end <= start:
            return ""
        return text_content(root)[start:end]
