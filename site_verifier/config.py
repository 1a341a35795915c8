from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from site_verifier.errors import ConfigurationError
from site_verifier_contracts import (
    AuthMethod,
    Credentials,
    HttpMethod,
    RetryPolicy,
    VerificationCriteria,
    VerificationRequest,
    to_canonical_text,
)

# Action input name -> settings field. The credential block is handled separately.
INPUT_FIELDS: dict[str, str] = {
    "siteUrl": "url",
    "httpMethod": "http_method",
    "expectedStatusCode": "expected_status",
    "useAuthentication": "use_authentication",
    "authenticationMethod": "auth_method",
    "expectedPayload": "expected_payload",
    "requestPayload": "request_body",
    "contentType": "content_type",
    "maxRetries": "max_attempts",
    "delayBetweenRetries": "delay_s",
    "logResponse": "log_response",
    "responseOutput": "response_output",
    "responseFilterPath": "filter_path",
    "timeoutSeconds": "timeout_s",
}
CREDENTIAL_BLOCK_INPUT = "environmentVariables"

CREDENTIAL_KEYS: dict[str, str] = {
    "SITE_USERNAME": "username",
    "SITE_PASSWORD": "password",  # nosec B105
    "SITE_AUTH_TOKEN": "auth_token",  # nosec B105
}

_INT_FIELDS = {"expected_status", "max_attempts"}
_FLOAT_FIELDS = {"delay_s", "timeout_s"}
_BOOL_FIELDS = {"use_authentication", "log_response"}


@dataclass(frozen=True)
class VerifierSettings:
    url: str = ""
    http_method: str = "GET"
    expected_status: int = 200
    use_authentication: bool = False
    auth_method: str = "basic"
    expected_payload: str | None = None
    request_body: str | None = None
    content_type: str = "application/json"
    max_attempts: int = 3
    delay_s: float = 5.0
    log_response: bool = False
    response_output: str | None = None
    filter_path: str | None = None
    timeout_s: float = 10.0
    credentials: Credentials = field(default_factory=Credentials)

    def to_request(self, auth_headers: Mapping[str, str]) -> VerificationRequest:
        return VerificationRequest(
            url=self.url,
            method=HttpMethod(self.http_method.upper()),
            headers=auth_headers,
            body=self.request_body,
            content_type=self.content_type,
            timeout_s=self.timeout_s,
        )

    def to_criteria(self) -> VerificationCriteria:
        return VerificationCriteria(
            expected_status=self.expected_status,
            expected_payload=self.expected_payload,
            filter_path=self.filter_path,
        )

    def to_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, delay_s=self.delay_s)

    def summary(self) -> dict[str, object]:
        payload: dict[str, object] = {
            item.name: getattr(self, item.name) for item in fields(self) if item.name != "credentials"
        }
        payload["credentials"] = {
            "username": self.credentials.username,
            "password": "***" if self.credentials.password else None,
            "auth_token": "***" if self.credentials.auth_token else None,
        }
        return payload


def parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "y", "on"}:
        return True
    if lowered in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_credential_block(block: str | None) -> Credentials:
    """
    Read credentials from a multi-line ``KEY=VALUE`` block.

    Recognized keys are SITE_USERNAME, SITE_PASSWORD and SITE_AUTH_TOKEN;
    values are trimmed and any other line is ignored.
    """
    values: dict[str, str] = {}
    if block:
        for line in block.splitlines():
            for key, attribute in CREDENTIAL_KEYS.items():
                prefix = f"{key}="
                if line.startswith(prefix):
                    values[attribute] = line[len(prefix) :].strip()
    return Credentials(**values)


def apply_values(settings: VerifierSettings, values: Mapping[str, Any]) -> VerifierSettings:
    """
    Overlay raw values onto settings.

    Keys may be settings field names or action input names. None and
    empty strings leave the current value untouched.
    """
    known = {item.name for item in fields(VerifierSettings)} - {"credentials"}
    changes: dict[str, Any] = {}
    credentials = settings.credentials
    for key, raw in values.items():
        if raw is None or (isinstance(raw, str) and raw.strip() == ""):
            continue
        if key in (CREDENTIAL_BLOCK_INPUT, "credentials"):
            credentials = _merge_credentials(credentials, raw)
            continue
        name = INPUT_FIELDS.get(key, key)
        if name not in known:
            continue
        changes[name] = _coerce(name, raw)
    return replace(settings, credentials=credentials, **changes)


def settings_from_environment(
    environ: Mapping[str, str] | None = None,
    base: VerifierSettings | None = None,
) -> VerifierSettings:
    """Collect action inputs exposed as ``INPUT_<NAME>`` environment variables."""
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for input_name in (*INPUT_FIELDS, CREDENTIAL_BLOCK_INPUT):
        raw = env.get(f"INPUT_{input_name.upper()}")
        if raw is not None:
            values[input_name] = raw
    return apply_values(base or VerifierSettings(), values)


def load_settings_file(path: str, base: VerifierSettings | None = None) -> VerifierSettings:
    settings_path = Path(path)
    raw = settings_path.read_text(encoding="utf-8")
    if settings_path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as exc:  # pragma: no cover - env-dependent
            raise RuntimeError(
                "YAML settings files require PyYAML. Install with: pip install pyyaml"
            ) from exc
        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML settings file {path}: {exc}") from exc
    else:
        try:
            loaded = json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid JSON settings file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError("Settings file must deserialize to an object.")
    return apply_values(base or VerifierSettings(), loaded)


def validate_settings(settings: VerifierSettings) -> None:
    if settings.url.strip() == "":
        raise ConfigurationError("URL is required but was not provided.")
    parsed = urlsplit(settings.url)
    if parsed.scheme not in {"http", "https"} or parsed.netloc == "":
        raise ConfigurationError(f"URL must be an absolute http(s) URL: {settings.url}")

    if not 100 <= settings.expected_status <= 599:
        raise ConfigurationError("Expected status code must be between 100 and 599.")

    try:
        HttpMethod(settings.http_method.upper())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid HTTP method: {settings.http_method}") from exc

    if settings.max_attempts < 1:
        raise ConfigurationError("Max attempts must be a positive integer.")
    if settings.delay_s < 0:
        raise ConfigurationError("Delay between attempts must be non-negative.")
    if settings.timeout_s <= 0:
        raise ConfigurationError("Request timeout must be positive.")

    if not settings.use_authentication:
        return
    try:
        auth_method = AuthMethod(settings.auth_method)
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid authentication method: {settings.auth_method}"
        ) from exc

    credentials = settings.credentials
    if auth_method is AuthMethod.BASIC:
        required = {"SITE_USERNAME": credentials.username, "SITE_PASSWORD": credentials.password}
    else:
        required = {"SITE_AUTH_TOKEN": credentials.auth_token}
    missing = sorted(name for name, value in required.items() if not value)
    if missing:
        raise ConfigurationError(
            f"Missing required credentials for {auth_method.value} authentication: "
            + ", ".join(missing)
        )


def _merge_credentials(current: Credentials, raw: Any) -> Credentials:
    if isinstance(raw, Mapping):
        incoming = Credentials(
            username=_optional_str(raw.get("username")),
            password=_optional_str(raw.get("password")),
            auth_token=_optional_str(raw.get("auth_token")),
        )
    else:
        incoming = parse_credential_block(str(raw))
    return Credentials(
        username=incoming.username or current.username,
        password=incoming.password or current.password,
        auth_token=incoming.auth_token or current.auth_token,
    )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _coerce(name: str, raw: Any) -> Any:
    if name in _BOOL_FIELDS:
        if isinstance(raw, bool):
            return raw
        return parse_bool(str(raw))
    if name in _INT_FIELDS:
        if isinstance(raw, bool):
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
        try:
            return int(str(raw).strip())
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if name in _FLOAT_FIELDS:
        if isinstance(raw, bool):
            raise ConfigurationError(f"{name} must be a number, got {raw!r}")
        try:
            return float(str(raw).strip())
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if name == "expected_payload" and not isinstance(raw, str):
        # settings files may spell the expected payload as structured data
        return to_canonical_text(raw)
    return str(raw)
