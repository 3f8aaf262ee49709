"""
Approximate string matching for quote anchoring.

`search` finds substrings of a text within a bounded edit distance
(insertions, deletions and substitutions) of a pattern, using Myers'
bit-parallel algorithm with Python integers as arbitrary-width bit vectors.
`match_quote` builds on it to score candidate locations of a quote by how
well their surrounding context and position agree with the expected ones.

Neither function knows anything about documents: they operate on plain
strings and return character offsets.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from pydantic import BaseModel

from anchoring.config import MATCH_QUOTE_MAX_ERRORS

__all__ = ["QuoteMatch", "StringMatch", "match_quote", "search"]


@dataclass(frozen=True)
class StringMatch:
    """An approximate occurrence of a pattern in a text."""

    start: int
    end: int
    errors: int


class QuoteMatch(BaseModel):
    """
    Best location of a quote in a text.

    Attributes:
        start: Character offset where the quote begins
        end: Character offset where the quote ends
        score: Sum of context, quote and position scores (0.0 to 3.0)
    """

    start: int
    end: int
    score: float


def _column_scores(text: str, pattern: str, anchored: bool = False) -> Iterator[int]:
    """Yield the edit distance of `pattern` against text ending at each column.

    With ``anchored=False`` the match may start anywhere in `text` (substring
    search). With ``anchored=True`` it must start at offset 0, which yields
    the plain edit distance between `pattern` and each prefix of `text`.
    """
    length = len(pattern)
    full = (1 << length) - 1
    last = 1 << (length - 1)

    peq: dict[str, int] = {}
    for i, char in enumerate(pattern):
        peq[char] = peq.get(char, 0) | (1 << i)

    pv = full
    mv = 0
    score = length
    carry = 1 if anchored else 0

    for char in text:
        eq = peq.get(char, 0)
        xv = eq | mv
        xh = (((eq & pv) + pv) ^ pv) | eq
        ph = mv | (~(xh | pv) & full)
        mh = pv & xh

        if ph & last:
            score += 1
        elif mh & last:
            score -= 1

        ph = ((ph << 1) | carry) & full
        mh = (mh << 1) & full
        pv = mh | (~(xv | ph) & full)
        mv = ph & xv

        yield score


def _exact_matches(text: str, pattern: str) -> list[StringMatch]:
    matches: list[StringMatch] = []
    pos = text.find(pattern)
    while pos != -1:
        matches.append(StringMatch(start=pos, end=pos + len(pattern), errors=0))
        pos = text.find(pattern, pos + 1)
    return matches


def _match_start(text: str, pattern: str, end: int, errors: int) -> int:
    """Return the earliest start of a match ending at `end` with `errors` errors."""
    min_start = max(0, end - len(pattern) - errors)
    reversed_text = text[min_start:end][::-1]
    longest = 0
    for i, score in enumerate(_column_scores(reversed_text, pattern[::-1], anchored=True)):
        if score <= errors:
            longest = i + 1
    return end - longest


def search(text: str, pattern: str, max_errors: float) -> list[StringMatch]:
    """
    Find the lowest-error approximate matches of `pattern` in `text`.

    Only matches with the smallest edit distance found (which must not
    exceed `max_errors`) are returned, one per end offset, in text order.
    Each match extends as far left as that edit distance allows.

    Args:
        text: The text to search in
        pattern: The string to find
        max_errors: Maximum number of edits allowed

    Returns:
        List of StringMatch objects (empty if nothing is close enough)
    """
    if not pattern:
        return []

    # Exact occurrences are the best possible result and cheap to find
    exact = _exact_matches(text, pattern)
    if exact:
        return exact

    ends: list[tuple[int, int]] = []
    best = max_errors
    for i, score in enumerate(_column_scores(text, pattern)):
        if score <= best:
            if score < best:
                ends.clear()
                best = score
            ends.append((i + 1, score))

    return [
        StringMatch(start=_match_start(text, pattern, end, errors), end=end, errors=errors)
        for end, errors in ends
    ]


def match_quote(
    text: str,
    quote: str,
    prefix: str = "",
    suffix: str = "",
    hint: int | None = None,
) -> QuoteMatch | None:
    """
    Find the best approximate match for `quote` in `text`.

    Candidates are found by searching for the quote together with its
    context, then each candidate is scored on three components:

    - how closely the quote-in-context matched
    - how closely the quote itself matched within that candidate
    - how near the candidate is to `hint`, when one is given

    Args:
        text: Document text to search
        quote: String to find within `text`
        prefix: Expected text before the quote
        suffix: Expected text after the quote
        hint: Expected offset of the match within `text`

    Returns:
        The highest-scoring QuoteMatch, or None if nothing matched
    """
    if not quote:
        return None

    max_errors = min(MATCH_QUOTE_MAX_ERRORS, len(quote) / 2)
    max_context_errors = max_errors + len(prefix) + len(suffix)
    quote_in_context = prefix + quote + suffix

    best: QuoteMatch | None = None
    for candidate in search(text, quote_in_context, max_context_errors):
        candidate_text = text[candidate.start : candidate.end]
        quote_matches = search(candidate_text, quote, max_errors)
        if not quote_matches:
            # The best context match need not contain the quote at all
            continue

        quote_match = quote_matches[0]
        start = candidate.start + quote_match.start

        context_score = (
            1.0 - candidate.errors / max_context_errors if max_context_errors > 0 else 0.0
        )
        quote_score = 1.0 - quote_match.errors / max_errors if max_errors > 0 else 0.0
        position_score = 1.0
        if hint is not None and text:
            position_score = 1.0 - abs(start - hint) / len(text)

        match = QuoteMatch(
            start=start,
            end=candidate.start + quote_match.end,
            score=context_score + quote_score + position_score,
        )
        if best is None or match.score > best.score:
            best = match

    return best
