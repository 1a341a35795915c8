from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class AuthMethod(str, Enum):
    BASIC = "basic"
    HEADER = "header"


class ContentKind(str, Enum):
    JSON = "json"
    MARKUP = "markup"
    PLAIN_TEXT = "plain_text"
    OPAQUE = "opaque"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> ContentKind:
        if not content_type:
            return cls.OPAQUE
        lowered = content_type.lower()
        if "application/json" in lowered or "+json" in lowered:
            return cls.JSON
        if (
            "text/html" in lowered
            or "application/xml" in lowered
            or "text/xml" in lowered
            or "+xml" in lowered
        ):
            return cls.MARKUP
        if "text/plain" in lowered:
            return cls.PLAIN_TEXT
        return cls.OPAQUE


class AttemptFailure(str, Enum):
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    STATUS_MISMATCH = "status_mismatch"
    PAYLOAD_MISMATCH = "payload_mismatch"


@dataclass(frozen=True)
class Credentials:
    username: str | None = None
    password: str | None = None
    auth_token: str | None = None

    def __repr__(self) -> str:
        # keep secrets out of tracebacks and debug output
        return (
            f"Credentials(username={self.username!r}, "
            f"password={'***' if self.password else None}, "
            f"auth_token={'***' if self.auth_token else None})"
        )


@dataclass(frozen=True)
class VerificationRequest:
    url: str
    method: HttpMethod = HttpMethod.GET
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None
    content_type: str = "application/json"
    timeout_s: float = 10.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def decode(self) -> ContentKind:
        return ContentKind.from_content_type(self.content_type)


@dataclass(frozen=True)
class VerificationCriteria:
    expected_status: int = 200
    expected_payload: str | None = None
    filter_path: str | None = None


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay_s: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_s < 0:
            raise ValueError("delay_s must be non-negative")


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    content_type: str | None
    body: Any
    decoded: bool = False


@dataclass(frozen=True)
class AttemptResult:
    index: int
    status_code: int | None
    comparand: Any = None
    matched: bool = False
    failure: AttemptFailure | None = None
    error: str | None = None


@dataclass(frozen=True)
class VerificationOutcome:
    succeeded: bool
    attempts: tuple[AttemptResult, ...]
    message: str
    response_content: str | None = None

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def last_status_code(self) -> int | None:
        for attempt in reversed(self.attempts):
            if attempt.status_code is not None:
                return attempt.status_code
        return None
