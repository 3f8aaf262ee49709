"""Tests for anchoring in paginated documents."""

import asyncio
import logging

import pytest

from anchoring.config import PLACEHOLDER_CLASS, PLACEHOLDER_TEXT
from anchoring.dom import HostRange, TextNode, has_class
from anchoring.errors import (
    AnchoringFailedError,
    CrossPageSelectionError,
    NodeNotFoundError,
    NoTextSelectedError,
    QuoteNotFoundError,
)
from anchoring.logging_config import GlobalIndent
from anchoring.pdf import AnchoringCache, PDFAnchoring, QuotePosition, StaticPDFViewer
from anchoring.selectors import TextPositionSelector, TextQuoteSelector
from anchoring.text_range import TextRange


FIRST_PAGE = "First page text. "
SECOND_PAGE = "Second page has the quote."


def placeholders(viewer, index):
    div = viewer.get_page_view(index).div
    return [e for e in div.iter() if has_class(e, PLACEHOLDER_CLASS)]


class TestPageText:
    """Tests for page text extraction and offsets."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "offset,expected_page",
        [(0, 0), (99, 0), (100, 1), (149, 1), (150, 2), (10000, 2)],
    )
    async def test_find_page(self, make_anchoring, offset, expected_page) -> None:
        _, anchoring = make_anchoring([["a" * 100], ["b" * 50], ["c" * 50]])
        page = await anchoring.find_page(offset)
        assert page.index == expected_page

    @pytest.mark.asyncio
    async def test_find_page_reports_page_start(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["a" * 100], ["b" * 50], ["c" * 50]])
        page = await anchoring.find_page(120)
        assert page.offset == 100
        assert page.text == "b" * 50

    @pytest.mark.asyncio
    async def test_find_page_without_pages(self) -> None:
        anchoring = PDFAnchoring(StaticPDFViewer([]))
        with pytest.raises(NodeNotFoundError):
            await anchoring.find_page(0)

    @pytest.mark.asyncio
    async def test_page_offset(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["a" * 100], ["b" * 50], ["c" * 50]])
        assert await anchoring.get_page_offset(0) == 0
        assert await anchoring.get_page_offset(2) == 150

    @pytest.mark.asyncio
    async def test_blank_fragments_are_dropped(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["Hello ", "   ", "\n", "world"]])
        assert await anchoring.get_page_text(0) == "Hello world"

    @pytest.mark.asyncio
    async def test_text_is_extracted_once(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])

        await anchoring.get_page_text(1)
        await anchoring.get_page_text(1)
        await anchoring.get_page_offset(2)

        assert viewer.extraction_count(0) == 1
        assert viewer.extraction_count(1) == 1

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_extraction(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE]])

        texts = await asyncio.gather(
            anchoring.get_page_text(0), anchoring.get_page_text(0)
        )

        assert texts == [FIRST_PAGE, FIRST_PAGE]
        assert viewer.extraction_count(0) == 1

    @pytest.mark.asyncio
    async def test_purge_cache_extracts_again(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE]])

        await anchoring.get_page_text(0)
        anchoring.purge_cache()

        assert await anchoring.get_page_text(0) == FIRST_PAGE
        assert viewer.extraction_count(0) == 2

    @pytest.mark.asyncio
    async def test_waits_for_pages_to_load(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE]], render=False, loaded=False)

        task = asyncio.ensure_future(anchoring.get_page_text(0))
        await asyncio.sleep(0)
        assert not task.done()

        viewer.load()
        assert await task == FIRST_PAGE

    @pytest.mark.asyncio
    async def test_missing_page(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([[FIRST_PAGE]])
        with pytest.raises(IndexError):
            await anchoring.get_page_view(3)


class TestPrioritizePages:
    """Tests for the page search order."""

    @pytest.mark.asyncio
    async def test_natural_order_without_hint(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["x" * 10]] * 5)
        assert await anchoring.prioritize_pages(None) == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_zig_zag_from_hinted_page(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["x" * 10]] * 5)
        position = TextPositionSelector(start=25, end=27)
        assert await anchoring.prioritize_pages(position) == [2, 1, 3, 0, 4]

    @pytest.mark.asyncio
    async def test_zig_zag_from_last_page(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([["x" * 10]] * 3)
        position = TextPositionSelector(start=25, end=27)
        assert await anchoring.prioritize_pages(position) == [2, 1, 0]


class TestSearchPages:
    """Tests for sequential page search."""

    @pytest.mark.asyncio
    async def test_no_pages(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([[FIRST_PAGE]])
        quote = TextQuoteSelector(exact="quote")
        with pytest.raises(QuoteNotFoundError):
            await anchoring.search_pages([], quote, TextPositionSelector(start=0, end=1))

    @pytest.mark.asyncio
    async def test_first_page_in_order_wins(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([["alpha beta "], ["gamma delta "], ["alpha beta "]])
        quote = TextQuoteSelector(exact="alpha")
        host_range = await anchoring.search_pages([2, 1, 0], quote)
        assert host_range.text_offsets(viewer.container) == (23, 28)

    @pytest.mark.asyncio
    async def test_hit_is_cached_under_hint(self, make_anchoring) -> None:
        _, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        quote = TextQuoteSelector(exact="quote")
        hint = TextPositionSelector(start=30, end=35)
        await anchoring.search_pages([0, 1], quote, hint)
        assert anchoring.cache.get_quote_position("quote", 30) == QuotePosition(
            page_index=1, start=20, end=25
        )


class TestAnchor:
    """Tests for anchoring selectors across pages."""

    @pytest.mark.asyncio
    async def test_position_on_rendered_page(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        selectors = [
            TextPositionSelector(start=37, end=42),
            TextQuoteSelector(exact="quote"),
        ]
        host_range = await anchoring.anchor(viewer.container, selectors)
        assert str(host_range) == "quote"

    @pytest.mark.asyncio
    async def test_mismatched_position_falls_back_to_nearest_quote(
        self, make_anchoring
    ) -> None:
        viewer, anchoring = make_anchoring([["alpha beta "], ["gamma delta "], ["alpha beta "]])
        selectors = [
            TextPositionSelector(start=24, end=29),
            TextQuoteSelector(exact="alpha"),
        ]
        host_range = await anchoring.anchor(viewer.container, selectors)
        assert host_range.text_offsets(viewer.container) == (23, 28)

    @pytest.mark.asyncio
    async def test_cached_quote_position_is_reused(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        selectors = [
            TextPositionSelector(start=3, end=8),
            TextQuoteSelector(exact="quote"),
        ]

        async def fail(*args, **kwargs):
            raise AssertionError("pages searched again")

        first = await anchoring.anchor(viewer.container, selectors)
        anchoring.search_pages = fail
        second = await anchoring.anchor(viewer.container, selectors)

        assert str(first) == str(second) == "quote"

    @pytest.mark.asyncio
    async def test_shared_cache(self) -> None:
        viewer = StaticPDFViewer([[FIRST_PAGE], [SECOND_PAGE]])
        cache = AnchoringCache()
        await PDFAnchoring(viewer, cache).get_page_text(1)
        assert 1 in cache.page_text

    @pytest.mark.asyncio
    async def test_nothing_anchors(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        with pytest.raises(AnchoringFailedError) as exc_info:
            await anchoring.anchor(viewer.container, [TextQuoteSelector(exact="lighthouse")])
        assert exc_info.value.reasons == ["TextQuoteSelector: Quote not found"]

    @pytest.mark.asyncio
    async def test_document_without_pages(self) -> None:
        """Both selectors miss instead of raising a lookup error"""
        viewer = StaticPDFViewer([])
        anchoring = PDFAnchoring(viewer)
        selectors = [
            {"type": "TextPositionSelector", "start": 0, "end": 1},
            {"type": "TextQuoteSelector", "exact": "quote"},
        ]

        with pytest.raises(AnchoringFailedError) as exc_info:
            await anchoring.anchor(viewer.container, selectors)

        reasons = exc_info.value.reasons
        assert len(reasons) == 2
        assert reasons[0].startswith("TextPositionSelector: Unable to resolve page")
        assert reasons[1].startswith("TextQuoteSelector: Unable to resolve page")

    @pytest.mark.asyncio
    async def test_concurrent_anchors_log_without_indent(
        self, make_anchoring, caplog
    ) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        first = [TextQuoteSelector(exact="quote")]
        second = [TextPositionSelector(start=6, end=10), TextQuoteSelector(exact="page")]

        with caplog.at_level(logging.DEBUG, logger="anchoring"):
            ranges = await asyncio.gather(
                anchoring.anchor(viewer.container, first),
                anchoring.anchor(viewer.container, second),
            )

        assert [str(r) for r in ranges] == ["quote", "page"]
        assert caplog.records
        assert not any(r.getMessage().startswith(("├", "└", "│")) for r in caplog.records)
        assert GlobalIndent.get_indent() == ""


class TestPlaceholders:
    """Tests for anchoring to pages that are not rendered yet."""

    @pytest.mark.asyncio
    async def test_placeholder_for_unrendered_page(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]], render=False)
        selectors = [TextPositionSelector(start=37, end=42)]

        host_range = await anchoring.anchor(viewer.container, selectors)

        assert str(host_range) == PLACEHOLDER_TEXT
        assert len(placeholders(viewer, 1)) == 1

    @pytest.mark.asyncio
    async def test_placeholder_is_reused(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]], render=False)
        selectors = [TextQuoteSelector(exact="quote")]

        await anchoring.anchor(viewer.container, selectors)
        await anchoring.anchor(viewer.container, selectors)

        assert len(placeholders(viewer, 1)) == 1

    @pytest.mark.asyncio
    async def test_page_rendered_removes_placeholder(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]], render=False)
        selectors = [TextPositionSelector(start=37, end=42)]
        await anchoring.anchor(viewer.container, selectors)

        assert anchoring.page_rendered(1) is False
        viewer.render_page(1)
        assert anchoring.page_rendered(1) is True
        assert placeholders(viewer, 1) == []
        assert anchoring.page_rendered(1) is False

        host_range = await anchoring.anchor(viewer.container, selectors)
        assert str(host_range) == "quote"

    @pytest.mark.asyncio
    async def test_reset_page_anchors_to_placeholder(self, make_anchoring) -> None:
        """A page whose rendering was discarded gets a placeholder again"""
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        selectors = [TextPositionSelector(start=37, end=42)]
        assert str(await anchoring.anchor(viewer.container, selectors)) == "quote"

        viewer.reset_page(1)

        host_range = await anchoring.anchor(viewer.container, selectors)
        assert str(host_range) == PLACEHOLDER_TEXT
        assert viewer.get_page_view(1).text_layer is None
        assert len(placeholders(viewer, 1)) == 1


class TestDescribe:
    """Tests for describing ranges in paginated documents."""

    @pytest.mark.asyncio
    async def test_position_is_document_wide(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        layer = viewer.get_page_view(1).text_layer.element
        host_range = TextRange.from_offsets(layer, 20, 25).to_range()

        selectors = await anchoring.describe(viewer.container, host_range)

        assert selectors == [
            TextPositionSelector(start=37, end=42),
            TextQuoteSelector(exact="quote", prefix="Second page has the ", suffix="."),
        ]

    @pytest.mark.asyncio
    async def test_describe_then_anchor(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        layer = viewer.get_page_view(1).text_layer.element
        host_range = TextRange.from_offsets(layer, 7, 11).to_range()

        selectors = await anchoring.describe(viewer.container, host_range)
        anchored = await anchoring.anchor(viewer.container, selectors)

        assert str(anchored) == "page"

    @pytest.mark.asyncio
    async def test_cross_page_selection(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        first = viewer.get_page_view(0).text_layer.element[0]
        second = viewer.get_page_view(1).text_layer.element[0]
        host_range = HostRange(TextNode(first), 6, TextNode(second), 6)

        with pytest.raises(CrossPageSelectionError):
            await anchoring.describe(viewer.container, host_range)

    @pytest.mark.asyncio
    async def test_collapsed_range_in_text_layer(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]])
        span = viewer.get_page_view(1).text_layer.element[0]
        host_range = HostRange(TextNode(span), 3, TextNode(span), 3)

        selectors = await anchoring.describe(viewer.container, host_range)

        assert selectors[0] == TextPositionSelector(start=20, end=20)
        assert selectors[1].exact == ""

    @pytest.mark.asyncio
    async def test_no_text_selected(self, make_anchoring) -> None:
        viewer, anchoring = make_anchoring([[FIRST_PAGE], [SECOND_PAGE]], render=False)
        selectors = [TextPositionSelector(start=37, end=42)]
        host_range = await anchoring.anchor(viewer.container, selectors)

        with pytest.raises(NoTextSelectedError):
            await anchoring.describe(viewer.container, host_range)
