"""Shell adapter implementations."""

from .base import CommandResult, ShellAdapter
from .interpreter_adapter import InterpreterAdapter

_UNSUPPORTED_SHELLS = {"cmd", "powershell", "pwsh"}


def create_shell_adapter(shell_name: str) -> ShellAdapter:
    normalized = shell_name.strip()
    if not normalized:
        msg = "Shell name must not be empty"
        raise ValueError(msg)
    if normalized.lower() in _UNSUPPORTED_SHELLS:
        msg = f"Unsupported shell adapter: {shell_name}"
        raise ValueError(msg)
    return InterpreterAdapter(normalized)


__all__ = [
    "CommandResult",
    "InterpreterAdapter",
    "ShellAdapter",
    "create_shell_adapter",
]
