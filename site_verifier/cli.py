from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from site_verifier.auth import build_auth_headers
from site_verifier.config import (
    CREDENTIAL_BLOCK_INPUT,
    VerifierSettings,
    apply_values,
    load_settings_file,
    parse_bool,
    settings_from_environment,
    validate_settings,
)
from site_verifier.reporting import GitHubActionsPublisher, LoggingResultPublisher
from site_verifier.transport import HttpTransport
from site_verifier.verify import VerificationLoop
from site_verifier_contracts import AttemptObserver, ResultPublisher

logger = logging.getLogger(__name__)


def _print_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _flag_values(args: argparse.Namespace) -> dict[str, Any]:
    values: dict[str, Any] = {
        "url": args.url,
        "http_method": args.method,
        "expected_status": args.expected_status,
        "expected_payload": args.expected_payload,
        "request_body": args.request_body,
        "content_type": args.content_type,
        "max_attempts": args.max_attempts,
        "delay_s": args.delay,
        "timeout_s": args.timeout,
        "filter_path": args.filter_path,
        "response_output": args.response_output,
        "auth_method": args.auth_method,
        "use_authentication": args.use_auth,
        "log_response": args.log_response,
    }
    if args.credentials_file:
        values[CREDENTIAL_BLOCK_INPUT] = Path(args.credentials_file).read_text(encoding="utf-8")
    return values


def collect_settings(args: argparse.Namespace) -> VerifierSettings:
    settings = settings_from_environment()
    if args.config:
        settings = load_settings_file(args.config, base=settings)
    return apply_values(settings, _flag_values(args))


def _build_publisher(choice: str) -> ResultPublisher:
    if choice == "auto":
        choice = "github" if parse_bool(os.environ.get("GITHUB_ACTIONS")) else "log"
    if choice == "github":
        return GitHubActionsPublisher()
    return LoggingResultPublisher()


def _build_observer(enabled: bool, url: str) -> AttemptObserver | None:
    if not enabled:
        return None
    from site_verifier.telemetry import OpenTelemetryAttemptObserver

    return OpenTelemetryAttemptObserver(url=url)


def _cmd_run(args: argparse.Namespace) -> int:
    publisher = _build_publisher(args.publisher)
    try:
        settings = collect_settings(args)
        validate_settings(settings)
        headers = build_auth_headers(
            settings.use_authentication, settings.auth_method, settings.credentials
        )
    except (ValueError, OSError) as exc:
        publisher.fail(str(exc))
        return 1

    logger.debug("verifying %s", settings.url)
    with HttpTransport(settings.timeout_s, log_response=settings.log_response) as transport:
        loop = VerificationLoop(
            transport,
            publisher,
            observer=_build_observer(args.otel, settings.url),
            log_response=settings.log_response,
            response_output=settings.response_output,
        )
        outcome = loop.run(
            settings.to_request(headers),
            settings.to_criteria(),
            settings.to_retry_policy(),
        )
    return 0 if outcome.succeeded else 1


def _cmd_config_validate(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"Settings file not found: {path}", file=sys.stderr)
        return 1
    try:
        settings = load_settings_file(str(path))
        validate_settings(settings)
    except Exception as exc:  # noqa: BLE001
        print(f"Settings validation failed: {exc}", file=sys.stderr)
        return 1
    _print_json({"valid": True, "file": str(path), "settings": settings.summary()})
    return 0


def _optional_bool(value: str) -> bool:
    return parse_bool(value, default=True)


def _add_run_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="JSON or YAML settings file")
    parser.add_argument("--url")
    parser.add_argument("--method")
    parser.add_argument("--expected-status")
    parser.add_argument("--expected-payload")
    parser.add_argument("--request-body")
    parser.add_argument("--content-type")
    parser.add_argument("--max-attempts")
    parser.add_argument("--delay", help="Seconds to wait between attempts")
    parser.add_argument("--timeout", help="Per-request timeout in seconds")
    parser.add_argument("--filter-path")
    parser.add_argument("--response-output", help="Output name receiving the response")
    parser.add_argument("--use-auth", type=_optional_bool, nargs="?", const=True)
    parser.add_argument("--auth-method", choices=("basic", "header"))
    parser.add_argument("--credentials-file", help="File with SITE_* KEY=VALUE lines")
    parser.add_argument("--log-response", type=_optional_bool, nargs="?", const=True)
    parser.add_argument("--publisher", choices=("auto", "github", "log"), default="auto")
    parser.add_argument("--otel", action="store_true", help="Emit an OpenTelemetry span per attempt")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="site-verifier endpoint verification CLI")
    parser.add_argument("--log-level", default="WARNING")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Verify an endpoint with retries")
    _add_run_args(run_parser)
    run_parser.set_defaults(func=_cmd_run)

    config_parser = subparsers.add_parser("config", help="Settings utility commands")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)

    config_validate = config_sub.add_parser("validate", help="Validate a settings file")
    config_validate.add_argument("--file", required=True)
    config_validate.set_defaults(func=_cmd_config_validate)

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    exit_code = args.func(args)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
