"""Anchoring for paginated documents rendered page by page."""

from anchoring.pdf.cache import AnchoringCache, QuotePosition
from anchoring.pdf.engine import PageOffset, PDFAnchoring
from anchoring.pdf.viewer import (
    PageView,
    PDFPage,
    PDFViewer,
    RenderingState,
    StaticPDFViewer,
    TextLayer,
)

__all__ = [
    "AnchoringCache",
    "PageOffset",
    "PageView",
    "PDFAnchoring",
    "PDFPage",
    "PDFViewer",
    "QuotePosition",
    "RenderingState",
    "StaticPDFViewer",
    "TextLayer",
]
