"""
Endpoint verification engine.

Example:
    >>> from site_verifier.verify import VerificationLoop
    >>> from site_verifier.transport import HttpTransport
    >>> from site_verifier.reporting import LoggingResultPublisher
    >>> with HttpTransport() as transport:
    ...     outcome = VerificationLoop(transport, LoggingResultPublisher()).run(
    ...         VerificationRequest(url="https://example.com/health"),
    ...         VerificationCriteria(expected_status=200, expected_payload='{"ok":true}'),
    ...         RetryPolicy(max_attempts=5, delay_s=2),
    ...     )
    >>> if not outcome.succeeded:
    ...     print(outcome.message)
"""

from site_verifier.verify.comparators import coerce_actual, decode_expected, payload_matches
from site_verifier.verify.extractors import (
    contains_keywords,
    extract_comparand,
    extract_json,
    extract_markup,
    split_property_path,
)
from site_verifier.verify.loop import (
    RESULT_OUTPUT,
    SUCCESS_MESSAGE,
    LoopState,
    VerificationLoop,
    failure_message,
)

__all__ = [
    # Comparators
    "coerce_actual",
    "decode_expected",
    "payload_matches",
    # Extractors
    "contains_keywords",
    "extract_comparand",
    "extract_json",
    "extract_markup",
    "split_property_path",
    # Loop
    "LoopState",
    "RESULT_OUTPUT",
    "SUCCESS_MESSAGE",
    "VerificationLoop",
    "failure_message",
]
