"""
Selector models for W3C Web Annotation targets.

Three selector kinds describe a location in a document, and an annotation
may carry any subset of them:

- `RangeSelector`: element paths plus character offsets into those elements
- `TextPositionSelector`: character offsets into the whole document text
- `TextQuoteSelector`: the quoted text with a little surrounding context

On the wire selectors are JSON objects with camelCase keys, carried as an
unordered array. In Python the fields use snake_case names.

Example:
    selectors = selectors_from_annotation('''
        target:
          - source: https://example.com/article
            selector:
              - type: TextQuoteSelector
                exact: "zorgtoeslag"
                prefix: "op een "
    ''')
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from anchoring.logging_config import logger

__all__ = [
    "RangeSelector",
    "Selector",
    "SelectorSet",
    "TextPositionSelector",
    "TextQuoteSelector",
    "dump_selectors",
    "parse_selectors",
    "selectors_from_annotation",
]


class RangeSelector(BaseModel):
    """
    Structural selector: element paths from the root plus text offsets.

    Container paths always point to elements, never to text nodes, and are
    written as ``/tag[n]/tag[n]`` with 1-based same-tag sibling indices.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["RangeSelector"] = "RangeSelector"
    start_container: str = Field(alias="startContainer")
    start_offset: int = Field(alias="startOffset")
    end_container: str = Field(alias="endContainer")
    end_offset: int = Field(alias="endOffset")


class TextPositionSelector(BaseModel):
    """Character offsets into the text content of the anchoring root."""

    type: Literal["TextPositionSelector"] = "TextPositionSelector"
    start: int
    end: int


class TextQuoteSelector(BaseModel):
    """
    Quoted text with optional prefix/suffix context.

    The prefix and suffix help disambiguate when the exact text appears
    multiple times. They are usually 32 characters long but may be shorter
    at the start or end of a document.
    """

    type: Literal["TextQuoteSelector"] = "TextQuoteSelector"
    exact: str
    prefix: str = ""
    suffix: str = ""

    @field_validator("prefix", "suffix", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def locate(self, text: str, hint: int | None = None) -> TextPositionSelector:
        """
        Locate this quote in a plain text.

        Raises:
            QuoteNotFoundError: If no approximate match exists
        """
        from anchoring.text_quote import to_text_position

        start, end = to_text_position(text, self.exact, self.prefix, self.suffix, hint)
        return TextPositionSelector(start=start, end=end)


Selector = Annotated[
    Union[RangeSelector, TextPositionSelector, TextQuoteSelector],
    Field(discriminator="type"),
]

SELECTOR_TYPES = frozenset(
    {"RangeSelector", "TextPositionSelector", "TextQuoteSelector"}
)

_selector_adapter: TypeAdapter[Selector] = TypeAdapter(Selector)


def parse_selectors(data: Iterable[Mapping[str, Any]]) -> list[Selector]:
    """
    Parse a wire-format selector array.

    Selector types this package does not anchor (e.g. FragmentSelector) are
    skipped. Known types with missing or invalid fields raise
    `pydantic.ValidationError`.
    """
    selectors: list[Selector] = []
    for item in data:
        selector_type = item.get("type")
        if selector_type not in SELECTOR_TYPES:
            logger.debug(f"Skipping unsupported selector type {selector_type!r}")
            continue
        selectors.append(_selector_adapter.validate_python(item))
    return selectors


def dump_selectors(selectors: Iterable[Selector]) -> list[dict[str, Any]]:
    """Serialize selectors to JSON-ready dicts with wire (camelCase) keys."""
    return [selector.model_dump(by_alias=True) for selector in selectors]


def selectors_from_annotation(text: str) -> list[Selector]:
    """
    Load the selectors of a W3C Web Annotation document (YAML or JSON).

    Accepts a single target or a list of targets; each target's ``selector``
    may be a single selector or a list.
    """
    data = yaml.safe_load(text) or {}
    target = data.get("target", {})
    targets = target if isinstance(target, list) else [target]

    raw: list[Mapping[str, Any]] = []
    for item in targets:
        if not isinstance(item, Mapping):
            continue
        selector = item.get("selector", [])
        raw.extend(selector if isinstance(selector, list) else [selector])
    return parse_selectors(raw)


@dataclass
class SelectorSet:
    """The selectors of one annotation, grouped by kind."""

    range: RangeSelector | None = None
    position: TextPositionSelector | None = None
    quote: TextQuoteSelector | None = None

    @classmethod
    def from_selectors(
        cls, selectors: Iterable[Selector | Mapping[str, Any]]
    ) -> SelectorSet:
        """Group selectors by kind; when a kind repeats the last one wins."""
        result = cls()
        for selector in selectors:
            if isinstance(selector, Mapping):
                parsed = parse_selectors([selector])
                if not parsed:
                    continue
                selector = parsed[0]
            if isinstance(selector, RangeSelector):
                result.range = selector
            elif isinstance(selector, TextPositionSelector):
                result.position = selector
            elif isinstance(selector, TextQuoteSelector):
                result.quote = selector
        return result
