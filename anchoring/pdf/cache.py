"""Caches owned by one paginated-document session."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass(frozen=True)
class QuotePosition:
    """Where a quote was found: a page and offsets into that page's text."""

    page_index: int
    start: int
    end: int


@dataclass
class AnchoringCache:
    """
    Memoized page text and quote search results.

    Absence of an entry means "not computed yet", never "known missing".
    Both maps are only ever cleared together.
    """

    page_text: dict[int, asyncio.Future[str]] = field(default_factory=dict)
    """Page index -> pending or finished text extraction."""

    quote_positions: dict[str, dict[int, QuotePosition]] = field(default_factory=dict)
    """Quote `exact` -> position hint start -> where the quote was found."""

    def get_quote_position(self, exact: str, hint_start: int) -> QuotePosition | None:
        return self.quote_positions.get(exact, {}).get(hint_start)

    def set_quote_position(
        self, exact: str, hint_start: int, position: QuotePosition
    ) -> None:
        self.quote_positions.setdefault(exact, {})[hint_start] = position

    def clear(self) -> None:
        self.page_text = {}
        self.quote_positions = {}
