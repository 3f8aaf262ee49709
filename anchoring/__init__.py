"""
Anchor W3C Web Annotation selectors to document ranges, and back.

Usage:
    from lxml import html
    from anchoring import anchor, describe

    root = html.fromstring("<body><p>Hello world</p></body>")
    host_range = anchor(root, [{"type": "TextQuoteSelector", "exact": "world"}])
    selectors = describe(root, host_range)

Paginated documents use `anchoring.pdf.PDFAnchoring`, whose operations are
coroutines because page text is extracted lazily.
"""

from anchoring.dom import HostRange, TextNode
from anchoring.errors import (
    AnchoringError,
    AnchoringFailedError,
    CrossPageSelectionError,
    InvalidOffsetError,
    NodeNotFoundError,
    NoTextSelectedError,
    OffsetExceedsTextLengthError,
    OutsideRootError,
    QuoteMismatchError,
    QuoteNotFoundError,
)
from anchoring.html import anchor, describe
from anchoring.matcher import QuoteMatch, match_quote
from anchoring.pdf import AnchoringCache, PDFAnchoring, StaticPDFViewer
from anchoring.selectors import (
    RangeSelector,
    Selector,
    SelectorSet,
    TextPositionSelector,
    TextQuoteSelector,
    dump_selectors,
    parse_selectors,
    selectors_from_annotation,
)
from anchoring.text_range import Position, ResolveDirection, TextRange

__version__ = "0.1.0"

__all__ = [
    "AnchoringCache",
    "AnchoringError",
    "AnchoringFailedError",
    "CrossPageSelectionError",
    "HostRange",
    "InvalidOffsetError",
    "NoTextSelectedError",
    "NodeNotFoundError",
    "OffsetExceedsTextLengthError",
    "OutsideRootError",
    "PDFAnchoring",
    "Position",
    "QuoteMatch",
    "QuoteMismatchError",
    "QuoteNotFoundError",
    "RangeSelector",
    "ResolveDirection",
    "Selector",
    "SelectorSet",
    "StaticPDFViewer",
    "TextNode",
    "TextPositionSelector",
    "TextQuoteSelector",
    "TextRange",
    "anchor",
    "describe",
    "dump_selectors",
    "match_quote",
    "parse_selectors",
    "selectors_from_annotation",
]
