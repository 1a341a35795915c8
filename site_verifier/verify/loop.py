"""
Retry-driven verification of a single HTTP endpoint.

The loop is a small state machine:

    ATTEMPTING --(matched)--> SUCCEEDED
    ATTEMPTING --(not matched, budget left)--> CONTINUE --(delay)--> ATTEMPTING
    ATTEMPTING --(not matched, budget spent)--> EXHAUSTED

Transport errors, malformed bodies and status or payload mismatches all
take the same path through the machine; they differ only in the
AttemptResult that is recorded. No delay follows the final attempt.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from site_verifier.errors import ParseError, TransportError
from site_verifier.verify.comparators import payload_matches
from site_verifier.verify.extractors import extract_comparand
from site_verifier_contracts import (
    AttemptFailure,
    AttemptObserver,
    AttemptResult,
    ResultPublisher,
    RetryPolicy,
    Transport,
    VerificationCriteria,
    VerificationOutcome,
    VerificationRequest,
    to_output_text,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Site verification succeeded."
RESULT_OUTPUT = "result"


class LoopState(str, Enum):
    ATTEMPTING = "attempting"
    CONTINUE = "continue"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


def failure_message(url: str) -> str:
    return f"Site verification failed for URL {url}."


class VerificationLoop:
    """
    Runs attempts against one endpoint until it matches or the budget is spent.

    Example:
        >>> with HttpTransport() as transport:
        ...     loop = VerificationLoop(transport, LoggingResultPublisher())
        ...     outcome = loop.run(request, VerificationCriteria(expected_status=200),
        ...                        RetryPolicy(max_attempts=3, delay_s=5))
    """

    def __init__(
        self,
        transport: Transport,
        publisher: ResultPublisher,
        *,
        sleep: Callable[[float], None] = time.sleep,
        observer: AttemptObserver | None = None,
        log_response: bool = False,
        response_output: str | None = None,
    ) -> None:
        self._transport = transport
        self._publisher = publisher
        self._sleep = sleep
        self._observer = observer
        self._log_response = log_response
        self._response_output = response_output or None

    def run(
        self,
        request: VerificationRequest,
        criteria: VerificationCriteria,
        policy: RetryPolicy,
    ) -> VerificationOutcome:
        attempts: list[AttemptResult] = []
        response_content: str | None = None
        counter = 0
        state = LoopState.ATTEMPTING

        while state is LoopState.ATTEMPTING:
            attempt, content = self._attempt(counter + 1, request, criteria)
            attempts.append(attempt)
            if content is not None:
                response_content = content
            if self._observer is not None:
                self._observer.observe(attempt)

            state = self._next_state(attempt, counter, policy)
            if state is LoopState.CONTINUE:
                logger.debug("waiting %.3fs before attempt %d", policy.delay_s, counter + 2)
                self._sleep(policy.delay_s)
                counter += 1
                state = LoopState.ATTEMPTING

        if state is LoopState.SUCCEEDED:
            self._publisher.info(f"Site verification succeeded for URL {request.url}.")
            self._publisher.set_output(RESULT_OUTPUT, SUCCESS_MESSAGE)
            return VerificationOutcome(
                succeeded=True,
                attempts=tuple(attempts),
                message=SUCCESS_MESSAGE,
                response_content=response_content,
            )

        message = failure_message(request.url)
        self._publisher.set_output(RESULT_OUTPUT, message)
        self._publisher.fail(message)
        return VerificationOutcome(
            succeeded=False,
            attempts=tuple(attempts),
            message=message,
            response_content=response_content,
        )

    @staticmethod
    def _next_state(attempt: AttemptResult, counter: int, policy: RetryPolicy) -> LoopState:
        if attempt.matched:
            return LoopState.SUCCEEDED
        if counter + 1 < policy.max_attempts:
            return LoopState.CONTINUE
        return LoopState.EXHAUSTED

    def _attempt(
        self,
        index: int,
        request: VerificationRequest,
        criteria: VerificationCriteria,
    ) -> tuple[AttemptResult, str | None]:
        try:
            response = self._transport.send(request, request.decode)
        except TransportError as exc:
            self._publisher.warning(f"Attempt {index} failed: {exc}")
            return (
                AttemptResult(
                    index=index,
                    status_code=None,
                    failure=AttemptFailure.TRANSPORT_ERROR,
                    error=str(exc),
                ),
                None,
            )

        try:
            comparand = extract_comparand(
                response.content_type,
                response.body,
                criteria.filter_path,
                decoded=response.decoded,
            )
        except ParseError as exc:
            self._publisher.warning(f"Attempt {index} failed: {exc}")
            return (
                AttemptResult(
                    index=index,
                    status_code=response.status_code,
                    failure=AttemptFailure.PARSE_ERROR,
                    error=str(exc),
                ),
                None,
            )

        content = self._publish_content(comparand)

        if response.status_code != criteria.expected_status:
            self._publisher.warning(
                f"Attempt {index}: Unexpected status code: {response.status_code}"
            )
            return (
                AttemptResult(
                    index=index,
                    status_code=response.status_code,
                    comparand=comparand,
                    failure=AttemptFailure.STATUS_MISMATCH,
                    error=(
                        f"expected status {criteria.expected_status}, "
                        f"got {response.status_code}"
                    ),
                ),
                content,
            )

        if criteria.expected_payload and not payload_matches(
            comparand, criteria.expected_payload
        ):
            self._publisher.warning(f"Attempt {index}: Unexpected payload.")
            if self._log_response:
                self._publisher.info(
                    f"Expected payload {criteria.expected_payload}, received {content}"
                )
            return (
                AttemptResult(
                    index=index,
                    status_code=response.status_code,
                    comparand=comparand,
                    failure=AttemptFailure.PAYLOAD_MISMATCH,
                    error="payload mismatch",
                ),
                content,
            )

        return (
            AttemptResult(
                index=index,
                status_code=response.status_code,
                comparand=comparand,
                matched=True,
            ),
            content,
        )

    def _publish_content(self, comparand: Any) -> str:
        content = to_output_text(comparand)
        if self._response_output is not None:
            self._publisher.set_output(self._response_output, content)
        if self._log_response:
            self._publisher.info(f"Response: {content}")
        return content
