"""
Step definitions for anchoring scenarios.

HTML scenarios anchor against the document's <body>; paginated scenarios use
an in-memory viewer whose pages render on demand.
"""

import asyncio

from behave import given, then, when  # type: ignore[import-untyped]
from lxml import html

from anchoring.config import PLACEHOLDER_TEXT
from anchoring.dom import HostRange, TextNode, text_content
from anchoring.errors import AnchoringError
from anchoring.html import anchor, describe
from anchoring.pdf import PDFAnchoring, StaticPDFViewer
from anchoring.selectors import selectors_from_annotation
from anchoring.text_range import TextRange


# === Documents ===


@given("the HTML document:")  # type: ignore[misc]
def step_given_html_document(context):
    """Parse the document and keep its body as the anchoring root."""
    context.root = html.document_fromstring(context.text).find("body")


@given("a paginated document with pages:")  # type: ignore[misc]
def step_given_paginated_document(context):
    """Create a viewer with one text fragment per page."""
    context.viewer = StaticPDFViewer([[row["text"]] for row in context.table])
    context.pdf = PDFAnchoring(context.viewer)


@given("all pages are rendered")  # type: ignore[misc]
def step_given_all_rendered(context):
    for index in range(context.viewer.pages_count):
        context.viewer.render_page(index)


# === Annotations ===


@given("the annotation:")  # type: ignore[misc]
def step_given_annotation(context):
    """Load selectors from a W3C annotation document."""
    context.selectors = selectors_from_annotation(context.text)


# === Actions ===


@when("I anchor the annotation")  # type: ignore[misc]
def step_when_anchor(context):
    try:
        context.range = anchor(context.root, context.selectors)
    except AnchoringError as e:
        context.error = e


@when("I anchor the description")  # type: ignore[misc]
def step_when_anchor_description(context):
    context.range = anchor(context.root, context.description)


@when("I anchor the annotation in the paginated document")  # type: ignore[misc]
def step_when_anchor_paginated(context):
    context.range = asyncio.run(
        context.pdf.anchor(context.viewer.container, context.selectors)
    )


@when('I describe the text "{text}"')  # type: ignore[misc]
def step_when_describe_text(context, text):
    """Describe the first occurrence of `text` in the document."""
    start = text_content(context.root).index(text)
    host_range = TextRange.from_offsets(context.root, start, start + len(text)).to_range()
    context.description = describe(context.root, host_range)


@when("page {index:d} finishes rendering")  # type: ignore[misc]
def step_when_page_renders(context, index):
    """Render the page and deliver the notification."""
    context.viewer.render_page(index)
    context.needs_reanchor = context.pdf.page_rendered(index)


@when("I describe a selection from page {first:d} to page {last:d}")  # type: ignore[misc]
def step_when_describe_across_pages(context, first, last):
    start = context.viewer.get_page_view(first).text_layer.element[0]
    end = context.viewer.get_page_view(last).text_layer.element[0]
    host_range = HostRange(TextNode(start), 0, TextNode(end), 4)
    try:
        context.description = asyncio.run(
            context.pdf.describe(context.viewer.container, host_range)
        )
    except AnchoringError as e:
        context.error = e


# === Assertions ===


@then('the anchored text is "{expected}"')  # type: ignore[misc]
def step_then_anchored_text(context, expected):
    actual = str(context.range)
    assert actual == expected, f"Expected '{expected}' but got '{actual}'"


@then('the anchored text contains "{expected}"')  # type: ignore[misc]
def step_then_anchored_text_contains(context, expected):
    actual = str(context.range)
    assert expected in actual, f"Expected '{expected}' in anchored text but got '{actual}'"


@then("anchoring fails")  # type: ignore[misc]
def step_then_anchoring_fails(context):
    assert context.error is not None, "Expected anchoring to fail"
    assert context.range is None, f"Expected no range but got '{context.range}'"


@then("the description has {count:d} selectors")  # type: ignore[misc]
def step_then_description_count(context, count):
    assert len(context.description) == count, (
        f"Expected {count} selectors but got {len(context.description)}"
    )


@then("the annotation is anchored to a placeholder")  # type: ignore[misc]
def step_then_placeholder(context):
    assert str(context.range) == PLACEHOLDER_TEXT, (
        f"Expected placeholder but got '{context.range}'"
    )


@then("the annotation needs to be anchored again")  # type: ignore[misc]
def step_then_needs_reanchor(context):
    assert context.needs_reanchor, "Expected the placeholder to be removed"


@then('describing fails with "{message}"')  # type: ignore[misc]
def step_then_describe_fails(context, message):
    assert context.error is not None, "Expected describing to fail"
    assert message in str(context.error), f"Expected '{message}' in '{context.error}'"
