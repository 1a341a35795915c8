"""
Response extraction for payload verification.

A response is classified once into a ContentKind from its declared
content type. Each kind has one extractor that turns the materialized
body and a filter path into the comparand handed to the payload matcher:

- `json`: dot-delimited property path (``data.items[0].id``); missing
  segments yield None
- `markup`: CSS selector; inner markup of the first match or None
- `plain_text`: comma-separated keywords; True iff all are present
- `opaque`: the body itself, filter path ignored

Without a filter path the body is returned unchanged for every kind.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from bs4 import BeautifulSoup

from site_verifier.errors import ParseError
from site_verifier_contracts import ContentKind, to_output_text

logger = logging.getLogger(__name__)

Extractor = Callable[[Any, str, bool], Any]

_INDEX_SEGMENT = re.compile(r"\[(\d+)\]")


def extract_comparand(
    content_type: str | None,
    body: Any,
    filter_path: str | None,
    decoded: bool = False,
) -> Any:
    """
    Produce the comparand for a response.

    Args:
        content_type: The response's declared Content-Type (may be None)
        body: Response body as materialized by the transport
        filter_path: Optional content-specific selector
        decoded: True when the transport already decoded the body as JSON

    Returns:
        The extracted comparand

    Raises:
        ParseError: JSON response body is malformed and a filter path is set
    """
    if not filter_path:
        return body
    kind = ContentKind.from_content_type(content_type)
    return _EXTRACTORS[kind](body, filter_path, decoded)


def split_property_path(path: str) -> list[str]:
    """
    Split a property path into segments.

    Examples:
        >>> split_property_path("a.b")
        ['a', 'b']
        >>> split_property_path("items[0].name")
        ['items', '0', 'name']
    """
    normalized = _INDEX_SEGMENT.sub(r".\1", path)
    return [segment for segment in normalized.split(".") if segment != ""]


def extract_json(body: Any, path: str, decoded: bool = False) -> Any:
    data = body
    if not decoded and isinstance(body, (str, bytes)):
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ParseError(f"Response body is not valid JSON: {exc}") from exc

    current = data
    for segment in split_property_path(path):
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, str):
            if not segment.isdigit() or int(segment) >= len(current):
                return None
            current = current[int(segment)]
        else:
            return None
    return current


def extract_markup(body: Any, selector: str, _decoded: bool = False) -> str | None:
    text = body if isinstance(body, str) else to_output_text(body)
    soup = BeautifulSoup(text, "html.parser")
    try:
        element = soup.select_one(selector)
    except Exception as exc:  # noqa: BLE001
        logger.debug("markup selector %r did not apply: %s", selector, exc)
        return None
    if element is None:
        return None
    inner = element.decode_contents()
    return inner or None


def contains_keywords(body: Any, keywords: str, _decoded: bool = False) -> bool:
    text = (body if isinstance(body, str) else to_output_text(body)).lower()
    keyword_list = [keyword.strip().lower() for keyword in keywords.split(",")]
    return all(keyword in text for keyword in keyword_list)


def passthrough(body: Any, _path: str, _decoded: bool = False) -> Any:
    return body


_EXTRACTORS: dict[ContentKind, Extractor] = {
    ContentKind.JSON: extract_json,
    ContentKind.MARKUP: extract_markup,
    ContentKind.PLAIN_TEXT: contains_keywords,
    ContentKind.OPAQUE: passthrough,
}
