"""Environment-backed application configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_SYSTEM_PROMPT = " ".join(
    [
        "Act as a command-line terminal.",
        "I type a question and you reply with the single command I should run.",
        (
            "Reply only with the command inside one code block and nothing else."
            " Do not write prose or explanations unless I ask you to explain."
        ),
        "When I give you a suggestion, improve on the previous command.",
    ]
)
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _to_bool(value: str | None, default: bool = False) -> bool:
    """Convert common env var truthy/falsy values into booleans."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(slots=True)
class AppConfig:
    """Runtime settings loaded from environment variables and config files."""

    api_key: str | None
    model: str
    api_url: str
    proxy: str | None
    shell: str
    always_copy: bool
    system_prompt: str
    timeout: float | None
    log_level: str

    @classmethod
    def from_env(cls) -> AppConfig:
        file_config = _load_preferred_file_config()

        return cls(
            api_key=(
                os.getenv("SHELLASK_API_KEY")
                or os.getenv("OPENAI_API_KEY")
                or _to_optional_string(file_config.get("api_key"))
            ),
            model=(
                os.getenv("SHELLASK_MODEL")
                or _to_optional_string(file_config.get("model"))
                or DEFAULT_MODEL
            ),
            api_url=(
                os.getenv("SHELLASK_API_URL")
                or _to_optional_string(file_config.get("api_url"))
                or DEFAULT_API_URL
            ),
            proxy=(
                os.getenv("SHELLASK_PROXY")
                or _to_optional_string(file_config.get("proxy"))
            ),
            shell=(
                os.getenv("SHELLASK_SHELL")
                or _to_optional_string(file_config.get("shell"))
                or _default_shell()
            ),
            always_copy=_to_bool(
                os.getenv("SHELLASK_ALWAYS_COPY"),
                default=_file_bool(file_config.get("always_copy"), default=False),
            ),
            system_prompt=(
                os.getenv("SHELLASK_SYSTEM_PROMPT")
                or _to_optional_string(file_config.get("system_prompt"))
                or DEFAULT_SYSTEM_PROMPT
            ),
            timeout=_to_positive_float(
                os.getenv("SHELLASK_TIMEOUT") or file_config.get("timeout")
            ),
            log_level=_to_log_level(
                os.getenv("SHELLASK_LOG_LEVEL") or file_config.get("log_level")
            ),
        )


def _file_bool(value: object, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _to_bool(value, default=default)
    return default


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _load_file_config(path_value: str) -> dict[str, object]:
    path = Path(path_value)
    if not path.exists() or not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = json.load(fh)
    except (OSError, json.JSONDecodeError):
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def _load_preferred_file_config() -> dict[str, object]:
    explicit_path = os.getenv("SHELLASK_CONFIG_FILE")
    if explicit_path:
        return _load_file_config(explicit_path)

    shared_config = _load_file_config("shellask.config.json")
    local_override = _load_file_config("shellask.config.local.json")
    return _merge_dicts(shared_config, local_override)


def _merge_dicts(base: dict[str, object], override: dict[str, object]) -> dict[str, object]:
    merged: dict[str, object] = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = _merge_dicts(base_value, value)
        else:
            merged[key] = value
    return merged


def _default_shell(login_shell: str | None = None) -> str:
    """Use the operator's login shell when known, otherwise ``sh``."""
    value = os.getenv("SHELL") if login_shell is None else login_shell
    if value and value.strip():
        return Path(value.strip()).name
    return "sh"


def _to_positive_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def _to_log_level(value: object) -> str:
    if isinstance(value, str) and value.strip().upper() in _LOG_LEVELS:
        return value.strip().upper()
    return "WARNING"
