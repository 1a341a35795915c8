from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import pytest

from site_verifier.errors import TransportError
from site_verifier.reporting import InMemoryResultPublisher
from site_verifier.transport import HttpTransport
from site_verifier.verify import RESULT_OUTPUT, SUCCESS_MESSAGE, VerificationLoop
from site_verifier_contracts import (
    AttemptFailure,
    AttemptResult,
    ContentKind,
    HttpResponse,
    RetryPolicy,
    VerificationCriteria,
    VerificationRequest,
)

URL = "https://deploy.example.test/health"


@dataclass
class ScriptedTransport:
    """Replays one scripted response (or exception) per call."""

    script: list[HttpResponse | Exception]
    calls: list[tuple[VerificationRequest, ContentKind]] = field(default_factory=list)

    def send(self, request: VerificationRequest, decode: ContentKind) -> HttpResponse:
        self.calls.append((request, decode))
        step = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(step, Exception):
            raise step
        return step


@dataclass
class RecordingSleeper:
    delays: list[float] = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@dataclass
class RecordingObserver:
    attempts: list[AttemptResult] = field(default_factory=list)

    def observe(self, attempt: AttemptResult) -> None:
        self.attempts.append(attempt)


def _ok(body: object = None, status: int = 200) -> HttpResponse:
    if body is None:
        body = {"status": "ok"}
    return HttpResponse(status_code=status, content_type="application/json", body=body)


def _loop(
    transport: ScriptedTransport,
    publisher: InMemoryResultPublisher,
    sleeper: RecordingSleeper,
    **kwargs: object,
) -> VerificationLoop:
    return VerificationLoop(transport, publisher, sleep=sleeper, **kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize("max_attempts", [1, 2, 5])
def test_all_failures_perform_exactly_max_attempts(max_attempts: int) -> None:
    transport = ScriptedTransport(script=[_ok(status=503)])
    publisher = InMemoryResultPublisher()
    sleeper = RecordingSleeper()

    outcome = _loop(transport, publisher, sleeper).run(
        VerificationRequest(url=URL),
        VerificationCriteria(expected_status=200),
        RetryPolicy(max_attempts=max_attempts, delay_s=1),
    )

    assert outcome.succeeded is False
    assert outcome.attempt_count == max_attempts
    assert len(transport.calls) == max_attempts
    assert len(sleeper.delays) == max_attempts - 1
    assert len(publisher.warnings) == max_attempts
    assert publisher.failures == [f"Site verification failed for URL {URL}."]
    assert URL in outcome.message
    assert all(a.failure is AttemptFailure.STATUS_MISMATCH for a in outcome.attempts)


def test_success_on_attempt_k_stops_without_further_delay() -> None:
    transport = ScriptedTransport(
        script=[TransportError("connection refused"), _ok(status=502), _ok()]
    )
    publisher = InMemoryResultPublisher()
    sleeper = RecordingSleeper()

    outcome = _loop(transport, publisher, sleeper).run(
        VerificationRequest(url=URL),
        VerificationCriteria(expected_status=200, expected_payload='{"status": "ok"}'),
        RetryPolicy(max_attempts=5, delay_s=2),
    )

    assert outcome.succeeded is True
    assert outcome.attempt_count == 3
    assert sleeper.delays == [2, 2]
    assert outcome.message == SUCCESS_MESSAGE
    assert publisher.outputs[RESULT_OUTPUT] == SUCCESS_MESSAGE
    assert publisher.failed is False
    assert [a.matched for a in outcome.attempts] == [False, False, True]
    assert outcome.attempts[-1].failure is None


def test_exhausted_delays_never_follow_final_attempt() -> None:
    transport = ScriptedTransport(script=[TransportError("timed out")])
    sleeper = RecordingSleeper()

    outcome = _loop(transport, InMemoryResultPublisher(), sleeper).run(
        VerificationRequest(url=URL),
        VerificationCriteria(),
        RetryPolicy(max_attempts=3, delay_s=5),
    )

    assert outcome.succeeded is False
    assert sleeper.delays == [5, 5]
    assert sum(sleeper.delays) >= 10


def test_transport_error_recorded_without_status() -> None:
    transport = ScriptedTransport(script=[TransportError("timed out")])
    publisher = InMemoryResultPublisher()

    outcome = _loop(transport, publisher, RecordingSleeper()).run(
        VerificationRequest(url=URL),
        VerificationCriteria(),
        RetryPolicy(max_attempts=1, delay_s=0),
    )

    attempt = outcome.attempts[0]
    assert attempt.status_code is None
    assert attempt.matched is False
    assert attempt.failure is AttemptFailure.TRANSPORT_ERROR
    assert attempt.error == "timed out"
    assert publisher.warnings == ["Attempt 1 failed: timed out"]
    assert outcome.last_status_code is None


def test_payload_mismatch_retries_then_fails() -> None:
    transport = ScriptedTransport(script=[_ok(body={"status": "starting"})])
    publisher = InMemoryResultPublisher()
    sleeper = RecordingSleeper()

    outcome = _loop(transport, publisher, sleeper).run(
        VerificationRequest(url=URL),
        VerificationCriteria(expected_payload='"ok"', filter_path="status"),
        RetryPolicy(max_attempts=2, delay_s=0.5),
    )

    assert outcome.succeeded is False
    assert [a.failure for a in outcome.attempts] == [
        AttemptFailure.PAYLOAD_MISMATCH,
        AttemptFailure.PAYLOAD_MISMATCH,
    ]
    assert outcome.attempts[0].comparand == "starting"
    assert publisher.warnings == ["Attempt 1: Unexpected payload.", "Attempt 2: Unexpected payload."]
    assert outcome.last_status_code == 200


def test_malformed_json_counts_as_failed_attempt() -> None:
    transport = ScriptedTransport(script=[_ok(body="<html>oops</html>"), _ok(body={"a": 1})])
    sleeper = RecordingSleeper()

    outcome = _loop(transport, InMemoryResultPublisher(), sleeper).run(
        VerificationRequest(url=URL),
        VerificationCriteria(expected_payload="1", filter_path="a"),
        RetryPolicy(max_attempts=2, delay_s=0),
    )

    assert outcome.succeeded is True
    assert outcome.attempts[0].failure is AttemptFailure.PARSE_ERROR
    assert outcome.attempts[0].status_code == 200
    assert sleeper.delays == [0]


def test_status_only_check_ignores_body() -> None:
    transport = ScriptedTransport(script=[_ok(body="anything", status=204)])

    outcome = _loop(transport, InMemoryResultPublisher(), RecordingSleeper()).run(
        VerificationRequest(url=URL),
        VerificationCriteria(expected_status=204),
        RetryPolicy(max_attempts=1, delay_s=0),
    )

    assert outcome.succeeded is True


def test_publishes_response_content_and_logs_it() -> None:
    transport = ScriptedTransport(script=[_ok(body={"version": {"tag": "v1.2.0"}})])
    publisher = InMemoryResultPublisher()

    outcome = _loop(
        transport,
        publisher,
        RecordingSleeper(),
        log_response=True,
        response_output="deployed",
    ).run(
        VerificationRequest(url=URL),
        VerificationCriteria(filter_path="version"),
        RetryPolicy(max_attempts=1, delay_s=0),
    )

    assert outcome.response_content == '{"tag":"v1.2.0"}'
    assert publisher.outputs["deployed"] == '{"tag":"v1.2.0"}'
    assert 'Response: {"tag":"v1.2.0"}' in publisher.infos


def test_decode_mode_follows_configured_content_type() -> None:
    transport = ScriptedTransport(script=[_ok()])

    _loop(transport, InMemoryResultPublisher(), RecordingSleeper()).run(
        VerificationRequest(url=URL, content_type="text/html"),
        VerificationCriteria(),
        RetryPolicy(max_attempts=1, delay_s=0),
    )

    assert transport.calls[0][1] is ContentKind.MARKUP


def test_observer_sees_every_attempt() -> None:
    transport = ScriptedTransport(script=[_ok(status=500), _ok()])
    observer = RecordingObserver()

    _loop(transport, InMemoryResultPublisher(), RecordingSleeper(), observer=observer).run(
        VerificationRequest(url=URL),
        VerificationCriteria(),
        RetryPolicy(max_attempts=3, delay_s=0),
    )

    assert [a.index for a in observer.attempts] == [1, 2]
    assert observer.attempts[-1].matched is True


def test_retry_policy_rejects_invalid_values() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=1, delay_s=-1)


def test_request_build_failure_is_recorded_and_retried() -> None:
    sent: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json={"status": "ok"})

    publisher = InMemoryResultPublisher()
    sleeper = RecordingSleeper()
    client = httpx.Client(transport=httpx.MockTransport(handler))
    with HttpTransport(client=client) as transport:
        outcome = VerificationLoop(transport, publisher, sleep=sleeper).run(
            VerificationRequest(url=URL, headers={"Authorization": "Bearer café"}),
            VerificationCriteria(),
            RetryPolicy(max_attempts=2, delay_s=0),
        )

    assert sent == []
    assert outcome.succeeded is False
    assert outcome.attempt_count == 2
    assert all(a.failure is AttemptFailure.TRANSPORT_ERROR for a in outcome.attempts)
    assert all(a.status_code is None for a in outcome.attempts)
    assert sleeper.delays == [0]
    assert len(publisher.warnings) == 2
    assert publisher.failures == [f"Site verification failed for URL {URL}."]


def test_decoded_json_string_document_with_filter_path() -> None:
    transport = ScriptedTransport(
        script=[
            HttpResponse(
                status_code=200,
                content_type="application/json",
                body='{"a":1}',
                decoded=True,
            )
        ]
    )

    outcome = _loop(transport, InMemoryResultPublisher(), RecordingSleeper()).run(
        VerificationRequest(url=URL),
        VerificationCriteria(filter_path="a"),
        RetryPolicy(max_attempts=1, delay_s=0),
    )

    assert outcome.succeeded is True
    assert outcome.attempts[0].comparand is None
