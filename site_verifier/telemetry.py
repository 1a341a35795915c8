from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol, cast

from site_verifier_contracts import AttemptObserver, AttemptResult


class SpanLike(Protocol):
    def set_attribute(self, key: str, value: str | bool | int) -> None: ...


class TracerLike(Protocol):
    def start_as_current_span(self, name: str) -> AbstractContextManager[SpanLike]: ...


class OpenTelemetryAttemptObserver(AttemptObserver):
    """AttemptObserver backed by OpenTelemetry spans."""

    def __init__(self, url: str, tracer: TracerLike | None = None) -> None:
        self._url = url
        self._tracer = tracer or self._default_tracer()

    def observe(self, attempt: AttemptResult) -> None:
        with self._tracer.start_as_current_span("site_verifier.attempt") as span:
            span.set_attribute("site_verifier.url", self._url)
            span.set_attribute("site_verifier.attempt", attempt.index)
            span.set_attribute("site_verifier.matched", attempt.matched)
            if attempt.status_code is not None:
                span.set_attribute("http.status_code", attempt.status_code)
            if attempt.failure is not None:
                span.set_attribute("site_verifier.failure", attempt.failure.value)
            if attempt.error is not None:
                span.set_attribute("site_verifier.error", attempt.error)

    @staticmethod
    def _default_tracer() -> TracerLike:
        try:
            from opentelemetry import trace
        except ImportError as exc:
            raise RuntimeError(
                "OpenTelemetryAttemptObserver requires 'opentelemetry-api'. "
                "Install it or pass an explicit tracer."
            ) from exc
        return cast(TracerLike, trace.get_tracer("site-verifier"))
