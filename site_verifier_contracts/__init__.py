from site_verifier_contracts.canonicalization import (
    deep_equal,
    is_number,
    parse_number,
    to_canonical_text,
    to_output_text,
)
from site_verifier_contracts.models import (
    AttemptFailure,
    AttemptResult,
    AuthMethod,
    ContentKind,
    Credentials,
    HttpMethod,
    HttpResponse,
    RetryPolicy,
    VerificationCriteria,
    VerificationOutcome,
    VerificationRequest,
)
from site_verifier_contracts.protocols import AttemptObserver, ResultPublisher, Transport

__all__ = [
    "AttemptFailure",
    "AttemptObserver",
    "AttemptResult",
    "AuthMethod",
    "ContentKind",
    "Credentials",
    "HttpMethod",
    "HttpResponse",
    "ResultPublisher",
    "RetryPolicy",
    "Transport",
    "VerificationCriteria",
    "VerificationOutcome",
    "VerificationRequest",
    "deep_equal",
    "is_number",
    "parse_number",
    "to_canonical_text",
    "to_output_text",
]
