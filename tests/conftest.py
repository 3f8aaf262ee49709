"""
Pytest configuration and fixtures for anchoring tests
"""
import pytest
from lxml import etree

from anchoring.logging_config import GlobalIndent
from anchoring.pdf import PDFAnchoring, StaticPDFViewer


PASSAGE = (
    "The lighthouse stood at the edge of the harbour for two centuries. "
    "Keepers lived in the small cottage beside it, trimming wicks and "
    "polishing the great lens every evening before dusk. When the light "
    "was finally automated, the cottage became a museum, and visitors "
    "still climb the spiral stairs to look out over the grey water."
)


@pytest.fixture(autouse=True)
def reset_log_indent():
    """Start every test with no log indentation"""
    GlobalIndent.reset()
    yield
    GlobalIndent.reset()


@pytest.fixture
def article():
    """Small article with nested inline markup"""
    return etree.fromstring(
        "<article>"
        "<h1>Lighthouses</h1>"
        "<p>The lighthouse stood at the <em>edge</em> of the harbour.</p>"
        "<p>Keepers lived in the <b>small</b> cottage beside it.</p>"
        "</article>"
    )


@pytest.fixture
def passage():
    """Plain text passage for quote matching"""
    return PASSAGE


@pytest.fixture
def make_anchoring():
    """Factory for a PDF anchoring session over an in-memory viewer"""

    def _make(pages, render=True, loaded=True):
        viewer = StaticPDFViewer(pages, loaded=loaded)
        if render:
            for index in range(viewer.pages_count):
                viewer.render_page(index)
        return viewer, PDFAnchoring(viewer)

    return _make
