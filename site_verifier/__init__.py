from site_verifier.auth import build_auth_headers
from site_verifier.config import (
    VerifierSettings,
    apply_values,
    load_settings_file,
    parse_bool,
    parse_credential_block,
    settings_from_environment,
    validate_settings,
)
from site_verifier.errors import ConfigurationError, ParseError, SiteVerifierError, TransportError
from site_verifier.reporting import (
    GitHubActionsPublisher,
    InMemoryResultPublisher,
    LoggingResultPublisher,
)
from site_verifier.telemetry import OpenTelemetryAttemptObserver
from site_verifier.transport import HttpTransport, wire_headers
from site_verifier.verify import LoopState, VerificationLoop, extract_comparand, payload_matches

__all__ = [
    "ConfigurationError",
    "GitHubActionsPublisher",
    "HttpTransport",
    "InMemoryResultPublisher",
    "LoggingResultPublisher",
    "LoopState",
    "OpenTelemetryAttemptObserver",
    "ParseError",
    "SiteVerifierError",
    "TransportError",
    "VerificationLoop",
    "VerifierSettings",
    "apply_values",
    "build_auth_headers",
    "extract_comparand",
    "load_settings_file",
    "parse_bool",
    "parse_credential_block",
    "payload_matches",
    "settings_from_environment",
    "validate_settings",
    "wire_headers",
]
