from __future__ import annotations

from typing import Protocol

from site_verifier_contracts.models import (
    AttemptResult,
    ContentKind,
    HttpResponse,
    VerificationRequest,
)


class Transport(Protocol):
    def send(self, request: VerificationRequest, decode: ContentKind) -> HttpResponse: ...


class ResultPublisher(Protocol):
    def set_output(self, name: str, value: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def fail(self, message: str) -> None: ...


class AttemptObserver(Protocol):
    def observe(self, attempt: AttemptResult) -> None: ...
