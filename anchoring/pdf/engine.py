"""
Anchoring for paginated documents (PDFs).

The document text is the concatenation of every page's text, where a page's
text is the join of its non-blank text fragments. That join matches what
the viewer renders in the page's text layer, so offsets computed from
extracted text line up with the rendered DOM.

Pages render lazily. When a selector anchors to a page whose text layer
does not exist yet, the range points at a placeholder element in the page
container instead; the host reports the page rendering via
`PDFAnchoring.page_rendered`, which removes the placeholder and tells the
caller to anchor again.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from lxml import etree

from anchoring import text_position, text_quote
from anchoring.config import (
    DEFAULT_CONTEXT_LENGTH,
    PLACEHOLDER_CLASS,
    PLACEHOLDER_TEXT,
    TEXT_LAYER_CLASS,
    validate_context_length,
)
from anchoring.dom import (
    HostRange,
    document_root,
    has_class,
    is_element,
    iter_text_nodes,
    parent_node,
    remove_node,
    text_offset,
)
from anchoring.errors import (
    AnchoringError,
    AnchoringFailedError,
    CrossPageSelectionError,
    InvalidOffsetError,
    NodeNotFoundError,
    NoTextSelectedError,
    QuoteMismatchError,
    QuoteNotFoundError,
)
from anchoring.logging_config import logger
from anchoring.pdf.cache import AnchoringCache, QuotePosition
from anchoring.pdf.viewer import PageView, PDFViewer, RenderingState
from anchoring.selectors import (
    Selector,
    SelectorSet,
    TextPositionSelector,
    TextQuoteSelector,
)
from anchoring.text_range import TextRange

__all__ = ["PageOffset", "PDFAnchoring"]

_NON_BLANK = re.compile(r"\S")


@dataclass(frozen=True)
class PageOffset:
    """The page containing a document offset."""

    index: int
    """Index of the page."""

    offset: int
    """Document offset at which the page's text starts."""

    text: str
    """Full text of the page."""


def _text_layer_of(elem: etree._Element | None) -> etree._Element | None:
    while elem is not None and not has_class(elem, TEXT_LAYER_CLASS):
        elem = elem.getparent()
    return elem


def _find_placeholder(page_div: etree._Element) -> etree._Element | None:
    for elem in page_div.iter():
        if is_element(elem) and has_class(elem, PLACEHOLDER_CLASS):
            return elem
    return None


class PDFAnchoring:
    """
    Anchor and describe selectors in one paginated document.

    Args:
        viewer: Page-view provider for the document
        cache: Session cache; a fresh one is created when omitted
        context_length: Prefix/suffix length for quotes produced by `describe`
    """

    def __init__(
        self,
        viewer: PDFViewer,
        cache: AnchoringCache | None = None,
        context_length: int = DEFAULT_CONTEXT_LENGTH,
    ) -> None:
        validate_context_length(context_length)
        self.viewer = viewer
        self.cache = cache if cache is not None else AnchoringCache()
        self.context_length = context_length

    def purge_cache(self) -> None:
        """Forget all extracted page text and quote search results."""
        self.cache.clear()

    async def get_page_view(self, page_index: int) -> PageView:
        """
        Return the view for a page, waiting for the document to load if needed.

        Raises:
            IndexError: If the viewer has no such page
        """
        view = self.viewer.get_page_view(page_index)
        if view is None or view.pdf_page is None:
            await self.viewer.wait_for_pages_loaded()
            view = self.viewer.get_page_view(page_index)
        if view is None:
            raise IndexError(f"No page view for page {page_index}")
        return view

    async def _extract_page_text(self, page_index: int) -> str:
        view = await self.get_page_view(page_index)
        items = await view.pdf_page.get_text_content()
        # Blank fragments are not rendered in the text layer
        return "".join(item for item in items if _NON_BLANK.search(item))

    async def get_page_text(self, page_index: int) -> str:
        """Return the text of a page, extracting it at most once per cache lifetime."""
        pending = self.cache.page_text.get(page_index)
        if pending is None:
            pending = asyncio.ensure_future(self._extract_page_text(page_index))
            self.cache.page_text[page_index] = pending
        return await pending

    async def get_page_offset(self, page_index: int) -> int:
        """Return the document offset at which a page's text begins."""
        offset = 0
        for index in range(page_index):
            offset += len(await self.get_page_text(index))
        return offset

    async def find_page(self, offset: int) -> PageOffset:
        """
        Find the page containing a document offset.

        Offsets past the end of the document map to the last page.

        Raises:
            NodeNotFoundError: If the document has no pages
        """
        last_index = self.viewer.pages_count - 1
        if last_index < 0:
            raise NodeNotFoundError(
                f"page for offset {offset} in a document without pages"
            )
        index = 0
        total = 0
        while True:
            text = await self.get_page_text(index)
            if total + len(text) > offset or index >= last_index:
                return PageOffset(index=index, offset=total, text=text)
            total += len(text)
            index += 1

    async def anchor_at_position(self, page_index: int, start: int, end: int) -> HostRange:
        """
        Locate offsets within a page's text.

        If the page's text layer is not rendered yet, the returned range
        selects a placeholder element in the page container instead.
        """
        view = await self.get_page_view(page_index)
        text_layer = view.text_layer
        if (
            view.rendering_state == RenderingState.FINISHED
            and text_layer is not None
            and text_layer.rendering_done
        ):
            return TextRange.from_offsets(text_layer.element, start, end).to_range()

        placeholder = _find_placeholder(view.div)
        if placeholder is None:
            placeholder = etree.SubElement(view.div, "span", {"class": PLACEHOLDER_CLASS})
            placeholder.text = PLACEHOLDER_TEXT
            logger.debug(f"Page {page_index} not rendered, added placeholder")
        return HostRange.select_node(placeholder)

    async def prioritize_pages(self, position: TextPositionSelector | None) -> list[int]:
        """
        Return page indexes in the order they should be searched.

        Without a position this is document order. With one, search starts
        at the page containing the position and zig-zags outwards.
        """
        indexes = list(range(self.viewer.pages_count))
        if position is None:
            return indexes

        page = await self.find_page(position.start)
        left = indexes[: page.index]
        right = indexes[page.index :]
        ordered: list[int] = []
        while left or right:
            if right:
                ordered.append(right.pop(0))
            if left:
                ordered.append(left.pop())
        return ordered

    async def search_pages(
        self,
        page_indexes: Iterable[int],
        quote: TextQuoteSelector,
        position_hint: TextPositionSelector | None = None,
    ) -> HostRange:
        """
        Search pages one at a time, in order, for a quote.

        Raises:
            QuoteNotFoundError: If no page contains the quote
        """
        for page_index in page_indexes:
            text = await self.get_page_text(page_index)
            offset = await self.get_page_offset(page_index)

            hint = None
            if position_hint is not None:
                hint = min(max(position_hint.start - offset, 0), len(text))

            try:
                start, end = text_quote.to_text_position(
                    text, quote.exact, quote.prefix, quote.suffix, hint
                )
            except QuoteNotFoundError:
                logger.debug(f"Page {page_index}: quote not found")
                continue

            if position_hint is not None:
                self.cache.set_quote_position(
                    quote.exact,
                    position_hint.start,
                    QuotePosition(page_index=page_index, start=start, end=end),
                )

            try:
                return await self.anchor_at_position(page_index, start, end)
            except AnchoringError as e:
                logger.debug(f"Page {page_index}: {e}")

        raise QuoteNotFoundError(quote.exact)

    async def _anchor_by_position(
        self, position: TextPositionSelector, quote: TextQuoteSelector | None
    ) -> HostRange:
        if position.start < 0:
            raise InvalidOffsetError(position.start)
        page = await self.find_page(position.start)
        start = position.start - page.offset
        end = position.end - page.offset

        if quote is not None and page.text[start:end] != quote.exact:
            raise QuoteMismatchError(quote.exact, page.text[start:end])

        return await self.anchor_at_position(page.index, start, end)

    async def _anchor_by_quote(
        self, quote: TextQuoteSelector, position: TextPositionSelector | None
    ) -> HostRange:
        if position is not None:
            cached = self.cache.get_quote_position(quote.exact, position.start)
            if cached is not None:
                logger.debug(f"Quote position cached on page {cached.page_index}")
                return await self.anchor_at_position(
                    cached.page_index, cached.start, cached.end
                )

        page_indexes = await self.prioritize_pages(position)
        logger.debug(f"Searching {len(page_indexes)} pages for quote")
        return await self.search_pages(page_indexes, quote, position)

    async def anchor(
        self,
        root: etree._Element,
        selectors: Iterable[Selector | Mapping[str, Any]],
    ) -> HostRange:
        """
        Anchor selectors to a range in the document.

        The position selector is tried first and verified against the quote.
        Failing that, the quote is looked up in the cache and then searched
        for page by page, nearest to the position first.

        Args:
            root: Viewer container element; page views locate the text
            selectors: Selector models or wire-format dicts, in any order

        Raises:
            AnchoringFailedError: If neither selector resolved
        """
        selector_set = SelectorSet.from_selectors(selectors)
        position = selector_set.position
        quote = selector_set.quote
        reasons: list[str] = []

        # Flat log lines: GlobalIndent is shared by concurrent anchors
        logger.debug("Anchoring selectors in paginated document")
        if position is not None:
            try:
                return await self._anchor_by_position(position, quote)
            except AnchoringError as e:
                logger.debug(f"TextPositionSelector: {e}")
                reasons.append(f"TextPositionSelector: {e}")

        if quote is not None:
            try:
                return await self._anchor_by_quote(quote, position)
            except AnchoringError as e:
                logger.debug(f"TextQuoteSelector: {e}")
                reasons.append(f"TextQuoteSelector: {e}")

        raise AnchoringFailedError(reasons)

    def get_text_layers(
        self, root: etree._Element, host_range: HostRange
    ) -> list[etree._Element]:
        """Return the text layers under `root` whose text overlaps the range."""
        if host_range.collapsed:
            container = host_range.start_container
            if not is_element(container):
                container = parent_node(container)
            layer = _text_layer_of(container)
            return [layer] if layer is not None else []

        doc = document_root(root)
        range_start, range_end = host_range.text_offsets(doc)

        layers: list[etree._Element] = []
        node_start = text_offset(doc, root, 0)
        for node in iter_text_nodes(root):
            node_end = node_start + len(node.data)
            if node_start < range_end and node_end > range_start:
                layer = _text_layer_of(node.parent)
                if layer is not None and not any(layer is other for other in layers):
                    layers.append(layer)
            node_start = node_end
        return layers

    def _page_index(self, text_layer: etree._Element) -> int:
        page_div = text_layer.getparent()
        for index in range(self.viewer.pages_count):
            view = self.viewer.get_page_view(index)
            if view is not None and view.div is page_div:
                return index
        # Fall back to the page container's position among its siblings
        return sum(1 for s in page_div.itersiblings(preceding=True) if is_element(s))

    async def describe(self, root: etree._Element, host_range: HostRange) -> list[Selector]:
        """
        Describe a range as a position and a quote selector.

        Raises:
            NoTextSelectedError: If the range covers no text-layer text
            CrossPageSelectionError: If the range covers more than one page
        """
        text_layers = self.get_text_layers(root, host_range)
        if not text_layers:
            raise NoTextSelectedError()
        if len(text_layers) > 1:
            raise CrossPageSelectionError(len(text_layers))

        text_layer = text_layers[0]
        page_offset = await self.get_page_offset(self._page_index(text_layer))

        start, end = text_position.clamped_offsets(text_layer, host_range)
        # Crop the range to the text layer before quoting it
        quote_range = TextRange.from_offsets(text_layer, start, end).to_range()
        quote = text_quote.from_range(text_layer, quote_range, self.context_length)

        position = TextPositionSelector(start=start + page_offset, end=end + page_offset)
        return [position, quote]

    def page_rendered(self, page_index: int) -> bool:
        """
        Handle the host's notification that a page finished rendering.

        Returns:
            True if a placeholder was removed, meaning annotations anchored
            to it should be anchored again
        """
        view = self.viewer.get_page_view(page_index)
        if view is None or view.text_layer is None or not view.text_layer.rendering_done:
            return False
        if view.rendering_state != RenderingState.FINISHED:
            return False

        placeholder = _find_placeholder(view.div)
        if placeholder is None:
            return False
        remove_node(placeholder)
        logger.debug(f"Page {page_index} rendered, removed placeholder")
        return True
