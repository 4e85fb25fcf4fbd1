"""Adapter that runs commands through ``<interpreter> -c``."""

from __future__ import annotations

import shutil
import subprocess

from .base import CommandResult, ShellAdapter

LAUNCH_FAILURE_RETURNCODE = 127


class InterpreterAdapter(ShellAdapter):
    """Run a command with a POSIX-style interpreter such as ``bash`` or ``zsh``.

    The child inherits the parent's stdout and stderr, so output appears live
    in the operator's terminal instead of being buffered.
    """

    def __init__(self, interpreter: str) -> None:
        self.interpreter = interpreter
        self.executable = shutil.which(interpreter) or interpreter

    @property
    def name(self) -> str:
        return self.interpreter

    def execute(self, command: str) -> CommandResult:
        self.log_request(command)
        started = self.monotonic_now()
        try:
            process = subprocess.run([self.executable, "-c", command], check=False)
        except OSError as exc:
            result = CommandResult(
                command=command,
                shell=self.name,
                returncode=LAUNCH_FAILURE_RETURNCODE,
                duration_seconds=self.monotonic_now() - started,
                executed=False,
                error=f"failed to launch {self.interpreter}: {exc}",
            )
        else:
            result = CommandResult(
                command=command,
                shell=self.name,
                returncode=process.returncode,
                duration_seconds=self.monotonic_now() - started,
            )

        self.log_result(result)
        return result
