from __future__ import annotations

import logging
import os
import secrets
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

logger = logging.getLogger(__name__)


@dataclass
class InMemoryResultPublisher:
    outputs: dict[str, str] = field(default_factory=dict)
    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def fail(self, message: str) -> None:
        self.failures.append(message)

    @property
    def failed(self) -> bool:
        return len(self.failures) > 0


class LoggingResultPublisher:
    """Routes notices to a logger; outputs are kept for the caller to read."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger
        self.outputs: dict[str, str] = {}
        self.failed = False

    def set_output(self, name: str, value: str) -> None:
        self.outputs[name] = value
        self._log.info("output %s=%s", name, value)

    def info(self, message: str) -> None:
        self._log.info(message)

    def warning(self, message: str) -> None:
        self._log.warning(message)

    def fail(self, message: str) -> None:
        self.failed = True
        self._log.error(message)


class GitHubActionsPublisher:
    """
    Publishes results through GitHub Actions workflow commands.

    Outputs go to the file named by ``GITHUB_OUTPUT`` when the runner
    provides one; older runners fall back to the ``::set-output`` command.
    """

    def __init__(self, output_path: str | None = None, stream: TextIO | None = None) -> None:
        resolved = output_path if output_path is not None else os.environ.get("GITHUB_OUTPUT")
        self._output_path = Path(resolved) if resolved else None
        self._stream = stream or sys.stdout
        self.failed = False

    def set_output(self, name: str, value: str) -> None:
        if self._output_path is None:
            self._command("set-output", value, name=name)
            return
        delimiter = f"ghadelimiter_{secrets.token_hex(8)}"
        with self._output_path.open("a", encoding="utf-8") as handle:
            handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")

    def info(self, message: str) -> None:
        self._stream.write(f"{message}\n")

    def warning(self, message: str) -> None:
        self._command("warning", message)

    def fail(self, message: str) -> None:
        self.failed = True
        self._command("error", message)

    def _command(self, command: str, message: str, **properties: str) -> None:
        props = ",".join(f"{key}={_escape_property(value)}" for key, value in properties.items())
        prefix = f"::{command} {props}::" if props else f"::{command}::"
        self._stream.write(f"{prefix}{_escape_data(message)}\n")
        self._stream.flush()


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")
