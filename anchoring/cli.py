"""Command-line interface for anchoring annotations to documents."""

import asyncio
import logging
from pathlib import Path

import typer
from lxml import etree, html
from rich.console import Console

from anchoring.config import (
    DEFAULT_CONTEXT_LENGTH,
    validate_context_length,
    validate_offsets,
)
from anchoring.dom import HostRange, text_content
from anchoring.errors import AnchoringError
from anchoring.html import anchor as anchor_html
from anchoring.html import describe as describe_html
from anchoring.logging_config import setup_logging
from anchoring.pdf import PDFAnchoring, StaticPDFViewer
from anchoring.selectors import dump_selectors, selectors_from_annotation
from anchoring.text_range import TextRange

app = typer.Typer(
    name="anchoring",
    help="Anchor W3C Web Annotation selectors to documents, and describe ranges as selectors.",
)
console = Console()

PAGE_SEPARATOR = "\f"


def _load_body(document: Path) -> etree._Element:
    root = html.parse(str(document)).getroot()
    body = root.find("body")
    return body if body is not None else root


def _read_pages(pages: Path) -> list[list[str]]:
    """Split a text file into pages (form feed separated) of line fragments."""
    text = pages.read_text(encoding="utf-8")
    return [page.splitlines(keepends=True) for page in text.split(PAGE_SEPARATOR)]


@app.command()
def anchor(
    document: Path = typer.Argument(..., exists=True, help="HTML document"),
    annotation: Path = typer.Argument(
        ..., exists=True, help="Annotation document (YAML or JSON)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log anchoring steps"),
) -> None:
    """Anchor an annotation's selectors and print the anchored text."""
    if verbose:
        setup_logging(logging.DEBUG)

    selectors = selectors_from_annotation(annotation.read_text(encoding="utf-8"))
    body = _load_body(document)

    try:
        host_range = anchor_html(body, selectors)
    except AnchoringError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e

    console.print(str(host_range), markup=False, highlight=False, soft_wrap=True)


@app.command()
def describe(
    document: Path = typer.Argument(..., exists=True, help="HTML document"),
    start: int = typer.Option(..., "--start", help="Start offset into the body text"),
    end: int = typer.Option(..., "--end", help="End offset into the body text"),
    context: int = typer.Option(
        DEFAULT_CONTEXT_LENGTH, "--context", help="Characters of quote context on each side"
    ),
) -> None:
    """Describe a range of the document's text as selectors (JSON)."""
    try:
        validate_offsets(start, end)
        validate_context_length(context)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e

    body = _load_body(document)
    if end > len(text_content(body)):
        console.print(f"[bold red]Error:[/bold red] End offset {end} is past the end of the text")
        raise typer.Exit(1)

    try:
        host_range: HostRange = TextRange.from_offsets(body, start, end).to_range()
    except AnchoringError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e

    selectors = describe_html(body, host_range, context)
    console.print_json(data=dump_selectors(selectors))


@app.command("pdf-anchor")
def pdf_anchor(
    pages: Path = typer.Argument(
        ..., exists=True, help="Text file with pages separated by form feeds"
    ),
    annotation: Path = typer.Argument(
        ..., exists=True, help="Annotation document (YAML or JSON)"
    ),
    render: bool = typer.Option(
        True, "--render/--no-render", help="Render page text layers before anchoring"
    ),
) -> None:
    """Anchor an annotation in a paginated text document."""
    selectors = selectors_from_annotation(annotation.read_text(encoding="utf-8"))
    viewer = StaticPDFViewer(_read_pages(pages))
    if render:
        for index in range(viewer.pages_count):
            viewer.render_page(index)

    anchoring = PDFAnchoring(viewer)
    try:
        host_range = asyncio.run(anchoring.anchor(viewer.container, selectors))
    except AnchoringError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1) from e

    page_div = host_range.common_ancestor_container
    while page_div is not None and page_div.get("data-page-number") is None:
        page_div = page_div.getparent()
    page = int(page_div.get("data-page-number")) - 1 if page_div is not None else -1

    if not render:
        console.print(f"Page {page}: [yellow]not rendered, anchored to placeholder[/yellow]")
        return
    console.print(f"Page {page}: ", end="")
    console.print(str(host_range), markup=False, highlight=False, soft_wrap=True)


@app.command()
def version() -> None:
    """Show version information."""
    console.print("anchoring 0.1.0")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
