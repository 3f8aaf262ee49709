"""Page-view provider interface for paginated documents.

The anchoring engine does not render PDFs. It talks to a viewer through the
protocols below: the viewer owns per-page rendering state, extracts page
text, and lays out one container element per page. `StaticPDFViewer` is an
in-memory implementation over pre-extracted page text.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Protocol

from lxml import etree

from anchoring.config import TEXT_LAYER_CLASS
from anchoring.dom import remove_node


class RenderingState(IntEnum):
    """Rendering progress of a page view."""

    INITIAL = 0
    RUNNING = 1
    PAUSED = 2
    FINISHED = 3


class TextLayer(Protocol):
    """Rendered text of a page, one element per text fragment."""

    rendering_done: bool
    element: etree._Element


class PDFPage(Protocol):
    """Handle on a loaded page of the document."""

    async def get_text_content(self) -> Sequence[str]:
        """Return the page's text fragments in reading order."""
        ...


class PageView(Protocol):
    """A page slot in the viewer."""

    div: etree._Element
    """Container element of the page."""

    pdf_page: PDFPage | None
    """Page handle, None until the document has loaded far enough."""

    rendering_state: RenderingState
    text_layer: TextLayer | None


class PDFViewer(Protocol):
    """The viewer's page collection."""

    @property
    def pages_count(self) -> int: ...

    def get_page_view(self, index: int) -> PageView | None:
        """Return the view for a page, or None if views do not exist yet."""
        ...

    async def wait_for_pages_loaded(self) -> None:
        """Wait until every page view has its page handle."""
        ...


@dataclass
class StaticTextLayer:
    element: etree._Element
    rendering_done: bool = True


@dataclass
class StaticPDFPage:
    items: list[str]
    extractions: int = 0

    async def get_text_content(self) -> Sequence[str]:
        self.extractions += 1
        # Extraction is asynchronous in real viewers
        await asyncio.sleep(0)
        return list(self.items)


@dataclass
class StaticPageView:
    div: etree._Element
    pdf_page: StaticPDFPage | None = None
    rendering_state: RenderingState = RenderingState.INITIAL
    text_layer: StaticTextLayer | None = None


@dataclass
class StaticPDFViewer:
    """
    In-memory viewer over pre-extracted page text.

    Each page is a list of text fragments. Pages start unrendered; call
    `render_page` to build a page's text layer (one ``span`` per non-blank
    fragment) the way a PDF viewer does when a page scrolls into view.

    Example:
        viewer = StaticPDFViewer([["Page one text"], ["Page two text"]])
        viewer.render_page(1)
    """

    pages: list[list[str]]
    loaded: bool = True
    container: etree._Element = field(init=False)
    _views: list[StaticPageView] = field(init=False, default_factory=list)
    _pages_loaded: asyncio.Event = field(init=False, default_factory=asyncio.Event)

    def __post_init__(self) -> None:
        self.container = etree.Element("div", id="viewer")
        for number, _ in enumerate(self.pages, start=1):
            div = etree.SubElement(
                self.container, "div", {"class": "page", "data-page-number": str(number)}
            )
            self._views.append(StaticPageView(div=div))
        if self.loaded:
            self.load()

    @property
    def pages_count(self) -> int:
        return len(self.pages)

    def get_page_view(self, index: int) -> StaticPageView | None:
        if 0 <= index < len(self._views):
            return self._views[index]
        return None

    async def wait_for_pages_loaded(self) -> None:
        await self._pages_loaded.wait()

    def load(self) -> None:
        """Attach page handles to every view and signal that pages are loaded."""
        for index, view in enumerate(self._views):
            view.pdf_page = StaticPDFPage(items=self.pages[index])
        self.loaded = True
        self._pages_loaded.set()

    def extraction_count(self, index: int) -> int:
        """Return how many times a page's text has been extracted."""
        page = self._views[index].pdf_page
        return page.extractions if page is not None else 0

    def render_page(self, index: int) -> etree._Element:
        """Render a page's text layer and return its element."""
        view = self._views[index]
        if view.text_layer is not None:
            remove_node(view.text_layer.element)

        layer = etree.SubElement(view.div, "div", {"class": TEXT_LAYER_CLASS})
        for item in self.pages[index]:
            if item.strip():
                span = etree.SubElement(layer, "span")
                span.text = item

        view.text_layer = StaticTextLayer(element=layer)
        view.rendering_state = RenderingState.FINISHED
        return layer

    def reset_page(self, index: int) -> None:
        """Discard a page's rendering, as viewers do for far-away pages."""
        view = self._views[index]
        if view.text_layer is not None:
            remove_node(view.text_layer.element)
        view.text_layer = None
        view.rendering_state = RenderingState.INITIAL

