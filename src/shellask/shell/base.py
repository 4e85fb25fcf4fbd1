"""Base shell adapter primitives."""

from __future__ import annotations

import abc
import logging
import re
import time
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)

_SECRET_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(--?(?:password|token|secret|api[-_]?key)\s+)([^\s]+)",
        r"((?:password|token|secret|api[-_]?key)\s*=\s*)([^\s]+)",
    )
]


@dataclass(slots=True)
class CommandResult:
    """Result of a command execution.

    Output is streamed straight to the parent's terminal, so only the exit
    status is captured here.
    """

    command: str
    shell: str
    returncode: int
    duration_seconds: float = 0.0
    executed: bool = True
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.executed and self.returncode == 0


class ShellAdapter(abc.ABC):
    """Abstract adapter for interpreter-backed command execution."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Friendly shell adapter name."""

    @abc.abstractmethod
    def execute(self, command: str) -> CommandResult:
        """Execute a shell command and return a normalized result."""

    def log_request(self, command: str) -> None:
        LOGGER.info(
            "command_request",
            extra={
                "shell": self.name,
                "command": self._sanitize_command(command),
            },
        )

    def log_result(self, result: CommandResult) -> None:
        LOGGER.info(
            "command_result",
            extra={
                "shell": result.shell,
                "returncode": result.returncode,
                "duration_seconds": round(result.duration_seconds, 4),
                "executed": result.executed,
                "error": result.error,
            },
        )

    @staticmethod
    def monotonic_now() -> float:
        return time.monotonic()

    def _sanitize_command(self, command: str) -> str:
        sanitized = command
        for pattern in _SECRET_PATTERNS:
            sanitized = pattern.sub(r"\1***", sanitized)
        return sanitized
