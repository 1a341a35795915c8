from __future__ import annotations

import logging
import sys

from site_verifier import HttpTransport, LoggingResultPublisher, VerificationLoop
from site_verifier_contracts import RetryPolicy, VerificationCriteria, VerificationRequest


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    url = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8080/health"
    with HttpTransport(timeout_s=5.0) as transport:
        outcome = VerificationLoop(transport, LoggingResultPublisher()).run(
            VerificationRequest(url=url),
            VerificationCriteria(expected_status=200, expected_payload='"ok"', filter_path="status"),
            RetryPolicy(max_attempts=5, delay_s=2),
        )
    print(f"{outcome.message} ({outcome.attempt_count} attempt(s))")
    raise SystemExit(0 if outcome.succeeded else 1)


if __name__ == "__main__":
    main()
