"""Tests for RangeSelector conversion."""

import pytest
from lxml import etree

from anchoring import range_selector
from anchoring.dom import HostRange, TextNode
from anchoring.errors import OutsideRootError
from anchoring.selectors import RangeSelector
from anchoring.text_range import TextRange


@pytest.fixture
def root():
    return etree.fromstring(
        "<div><p>First paragraph</p><p>Second <b>bold</b> text</p></div>"
    )


class TestXPathFromNode:
    """Tests for generating container paths."""

    def test_nested_element(self, root) -> None:
        assert range_selector.xpath_from_node(root, root[1][0]) == "/p[2]/b[1]"

    def test_text_node_uses_parent(self, root) -> None:
        assert range_selector.xpath_from_node(root, TextNode(root[1][0])) == "/p[2]/b[1]"

    def test_tail_uses_containing_element(self, root) -> None:
        tail = TextNode(root[1][0], is_tail=True)
        assert range_selector.xpath_from_node(root, tail) == "/p[2]"

    def test_root_itself(self, root) -> None:
        assert range_selector.xpath_from_node(root, root) == "/"

    def test_outside_root(self, root) -> None:
        with pytest.raises(OutsideRootError):
            range_selector.xpath_from_node(root[0], root[1])

    def test_index_counts_same_tag_only(self) -> None:
        root = etree.fromstring("<div><h2>a</h2><p>b</p><h2>c</h2><p>d</p></div>")
        assert range_selector.xpath_from_node(root, root[3]) == "/p[2]"
        assert range_selector.xpath_from_node(root, root[2]) == "/h2[2]"


class TestNodeFromXPath:
    """Tests for resolving container paths."""

    def test_nested_element(self, root) -> None:
        assert range_selector.node_from_xpath(root, "/p[2]/b[1]") is root[1][0]

    def test_empty_path_is_root(self, root) -> None:
        assert range_selector.node_from_xpath(root, "/") is root
        assert range_selector.node_from_xpath(root, "") is root

    def test_missing_element(self, root) -> None:
        assert range_selector.node_from_xpath(root, "/p[3]") is None

    def test_unsupported_step(self, root) -> None:
        assert range_selector.node_from_xpath(root, "/p[last()]") is None
        assert range_selector.node_from_xpath(root, "//p[1]/text()") is None

    def test_path_is_anchored_at_root(self, root) -> None:
        # b is a grandchild, not a child, of root
        assert range_selector.node_from_xpath(root, "/b[1]") is None


class TestFromRange:
    """Tests for describing host ranges."""

    def test_range_in_text_node(self, root) -> None:
        bold = TextNode(root[1][0])
        selector = range_selector.from_range(root, HostRange(bold, 0, bold, 4))
        assert selector == RangeSelector(
            start_container="/p[2]/b[1]",
            start_offset=0,
            end_container="/p[2]/b[1]",
            end_offset=4,
        )

    def test_ignored_parents(self, root) -> None:
        bold = TextNode(root[1][0])
        selector = range_selector.from_range(
            root, HostRange(bold, 0, bold, 4), ignore_parent=lambda e: e.tag == "b"
        )
        assert selector.start_container == "/p[2]"
        assert selector.start_offset == 7
        assert selector.end_offset == 11

    def test_empty_elements_are_not_containers(self) -> None:
        root = etree.fromstring("<div><p>Some text</p><span></span><p>More</p></div>")
        host_range = HostRange(root[1], 0, TextNode(root[2]), 4)
        selector = range_selector.from_range(root, host_range)
        assert selector.start_container == "/p[2]"
        assert selector.start_offset == 0
        assert str(range_selector.to_range(root, selector)) == "More"

    def test_whole_root_contents(self) -> None:
        root = etree.fromstring("<div><p>Some text</p><span></span><p>More</p></div>")
        selector = range_selector.from_range(root, HostRange.select_node_contents(root))
        assert (selector.start_container, selector.start_offset) == ("/p[1]", 0)
        assert (selector.end_container, selector.end_offset) == ("/p[2]", 4)

    def test_range_outside_root(self, root) -> None:
        text = TextNode(root[1])
        with pytest.raises(OutsideRootError):
            range_selector.from_range(root[0], HostRange(text, 0, text, 3))


class TestToRange:
    """Tests for resolving range selectors."""

    def test_offsets_into_container_text(self, root) -> None:
        selector = RangeSelector(
            start_container="/p[2]", start_offset=7, end_container="/p[2]", end_offset=11
        )
        assert str(range_selector.to_range(root, selector)) == "bold"

    def test_missing_container_returns_none(self, root) -> None:
        selector = RangeSelector(
            start_container="/p[5]", start_offset=0, end_container="/p[1]", end_offset=1
        )
        assert range_selector.to_range(root, selector) is None

    def test_offset_past_text_returns_none(self, root) -> None:
        selector = RangeSelector(
            start_container="/p[1]", start_offset=0, end_container="/p[1]", end_offset=99
        )
        assert range_selector.to_range(root, selector) is None

    def test_zero_offset_in_empty_container(self) -> None:
        root = etree.fromstring("<div><p>text</p><span></span></div>")
        selector = RangeSelector(
            start_container="/span[1]",
            start_offset=0,
            end_container="/span[1]",
            end_offset=0,
        )
        host_range = range_selector.to_range(root, selector)
        assert host_range.start_container is root[1]
        assert host_range.collapsed

    def test_round_trip_across_elements(self, root) -> None:
        original = TextRange.from_offsets(root, 6, 22).to_range()
        selector = range_selector.from_range(root, original)
        assert str(range_selector.to_range(root, selector)) == str(original)
        assert str(original) == "paragraphSecond "
