"""
Canonical serialization and structural comparison for response payloads.

Comparands extracted from HTTP responses are plain Python values (the
result of JSON decoding, markup fragments, or keyword-check booleans).
These helpers give them one stable text form and one equality rule so
that expected literals written by hand compare the same way on every run.

Example:
    >>> from site_verifier_contracts.canonicalization import to_canonical_text
    >>> to_canonical_text({"ok": True, "items": [1, 2]})
    '{"ok":true,"items":[1,2]}'
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any

# =============================================================================
# Text Form
# =============================================================================


def to_canonical_text(value: Any) -> str:
    """
    Serialize a value to compact JSON text.

    Keys keep their insertion order and non-ASCII characters are emitted
    as-is, so the output matches what a browser-side ``JSON.stringify``
    would produce for the same document.

    Args:
        value: Any JSON-compatible value

    Returns:
        Compact JSON text

    Examples:
        >>> to_canonical_text("hello")
        '"hello"'
        >>> to_canonical_text(None)
        'null'
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def to_output_text(value: Any) -> str:
    """
    Render a comparand for publication as an output value.

    Strings are published verbatim; everything else uses the canonical
    JSON form.
    """
    if isinstance(value, str):
        return value
    return to_canonical_text(value)


# =============================================================================
# Numbers
# =============================================================================


def is_number(value: Any) -> bool:
    """True for ints and floats, never for booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> int | float | None:
    """
    Parse a string as a finite number.

    Args:
        text: Candidate numeric text (surrounding whitespace is ignored)

    Returns:
        The parsed int or float, or None when the text is not numeric

    Examples:
        >>> parse_number(" 42 ")
        42
        >>> parse_number("42.5x") is None
        True
    """
    stripped = text.strip()
    if stripped == "" or "_" in stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        parsed = float(stripped)
    except ValueError:
        return None
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


# =============================================================================
# Structural Equality
# =============================================================================


def deep_equal(left: Any, right: Any) -> bool:
    """
    Compare two decoded values structurally.

    Rules:
    - Booleans only equal booleans (``True`` never equals ``1``)
    - Numbers compare numerically, so ``42`` equals ``42.0``
    - Sequences (lists, tuples) compare element by element, in order
    - Mappings compare by key set, then value by value
    - Everything else uses exact equality with matching types

    Args:
        left: First value
        right: Second value

    Returns:
        True if the values are structurally equal
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    if is_number(left) and is_number(right):
        return bool(left == right)

    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left.keys()) != set(right.keys()):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)

    if _is_sequence(left) and _is_sequence(right):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))

    if type(left) is not type(right):
        return False
    return bool(left == right)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))
