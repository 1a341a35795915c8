"""
Payload comparison for verification attempts.

The expected payload is a literal string from configuration. It is
decoded as JSON when possible and otherwise compared as a plain string.
Coercion is only ever applied to the actual value.
"""

from __future__ import annotations

import json
from typing import Any

from site_verifier_contracts import deep_equal, is_number, parse_number, to_canonical_text


def decode_expected(expected: str) -> Any:
    """
    Decode an expected payload literal.

    Examples:
        >>> decode_expected("42")
        42
        >>> decode_expected("ok")
        'ok'
    """
    try:
        return json.loads(expected, parse_constant=_reject_constant)
    except ValueError:
        return expected


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; such literals stay plain strings
    raise ValueError(f"non-standard JSON constant: {name}")


def coerce_actual(actual: Any, expected: Any) -> Any:
    """
    Bring the actual value into the expected value's shape.

    - Numeric expected, numeric-looking string actual: parse the string
    - String expected, non-string actual: canonical JSON text of actual
    - Anything else is left as-is
    """
    if is_number(expected) and isinstance(actual, str):
        parsed = parse_number(actual)
        return actual if parsed is None else parsed
    if isinstance(expected, str) and not isinstance(actual, str):
        return to_canonical_text(actual)
    return actual


def payload_matches(actual: Any, expected: str) -> bool:
    """
    Check whether an extracted comparand matches an expected literal.

    Structured expected literals (arrays, objects) are never coerced to;
    a scalar actual against them is a plain mismatch.

    Args:
        actual: Comparand extracted from the response
        expected: Expected payload literal from configuration

    Returns:
        True if the payloads are structurally equal after coercion
    """
    expected_value = decode_expected(expected)
    return deep_equal(coerce_actual(actual, expected_value), expected_value)
