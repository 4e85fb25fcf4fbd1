from __future__ import annotations

from collections.abc import Iterable

import pytest

from shellask import cli
from shellask.agent.models import CompletionReply, Conversation
from shellask.clipboard import ClipboardError
from shellask.config import AppConfig
from shellask.llm.client import ChatClient, TransportError
from shellask.shell import CommandResult


def _fake_config() -> AppConfig:
    return AppConfig(
        api_key="sk-test",
        model="gpt-3.5-turbo",
        api_url="https://api.openai.com/v1/chat/completions",
        proxy=None,
        shell="bash",
        always_copy=False,
        system_prompt="prompt",
        timeout=None,
        log_level="WARNING",
    )


class FakeAdapter:
    name = "fake"

    def __init__(self, returncode: int = 0, executed: bool = True) -> None:
        self.commands: list[str] = []
        self.returncode = returncode
        self.executed = executed

    def execute(self, command: str) -> CommandResult:
        self.commands.append(command)
        return CommandResult(
            command=command,
            shell=self.name,
            returncode=self.returncode,
            executed=self.executed,
            error=None if self.executed else "failed to launch fake",
        )


def _install(
    monkeypatch: pytest.MonkeyPatch,
    *,
    argv: list[str],
    answers: Iterable[str] = (),
    replies: Iterable[str] = ("ls",),
    adapter: FakeAdapter | None = None,
    config: AppConfig | None = None,
) -> dict[str, object]:
    captured: dict[str, object] = {"clients": [], "copied": []}
    reply_iter = iter(replies)
    shell_adapter = adapter or FakeAdapter()
    captured["adapter"] = shell_adapter
    loaded_config = config or _fake_config()

    class FakeClient:
        def __init__(self, **kwargs: object) -> None:
            captured["clients"].append(kwargs)

        def complete(self, conversation: Conversation) -> CompletionReply:
            return CompletionReply(content=next(reply_iter))

    answer_iter = iter(answers)
    monkeypatch.setattr("sys.argv", ["shellask", *argv])
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(answer_iter))
    monkeypatch.setattr(cli, "ChatClient", FakeClient)
    monkeypatch.setattr(cli, "create_shell_adapter", lambda _name: shell_adapter)
    monkeypatch.setattr(cli, "copy_to_clipboard", captured["copied"].append)
    monkeypatch.setattr(
        cli,
        "AppConfig",
        type("FakeConfig", (), {"from_env": staticmethod(lambda: loaded_config)}),
    )
    monkeypatch.setattr(cli, "configure_logging", lambda _level: None)
    return captured


def test_parser_defaults() -> None:
    args = cli.build_parser().parse_args([])
    assert args.question is None
    assert args.shell is None
    assert args.api_key is None
    assert args.proxy is None
    assert args.copy is False


def test_parser_accepts_named_flags() -> None:
    args = cli.build_parser().parse_args(
        [
            "--shell",
            "zsh",
            "--api-key",
            "sk-x",
            "--proxy",
            "http://127.0.0.1:7890",
            "--copy",
            "list files",
        ]
    )

    assert args.shell == "zsh"
    assert args.api_key == "sk-x"
    assert args.proxy == "http://127.0.0.1:7890"
    assert args.copy is True
    assert args.question == "list files"


def test_flags_override_loaded_config() -> None:
    args = cli.build_parser().parse_args(
        ["--shell", "zsh", "--api-key", "sk-x", "--proxy", "http://p:1", "--copy", "-v"]
    )

    config = cli.apply_overrides(_fake_config(), args)

    assert config.shell == "zsh"
    assert config.api_key == "sk-x"
    assert config.proxy == "http://p:1"
    assert config.always_copy is True
    assert config.log_level == "DEBUG"


def test_main_passes_config_to_client(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _install(
        monkeypatch,
        argv=["--proxy", "http://127.0.0.1:7890", "list files"],
        answers=["n"],
    )

    assert cli.main() == 0
    assert captured["clients"] == [
        {
            "api_key": "sk-test",
            "model": "gpt-3.5-turbo",
            "api_url": "https://api.openai.com/v1/chat/completions",
            "proxy": "http://127.0.0.1:7890",
            "timeout": None,
        }
    ]


def test_main_prompts_for_question_and_executes(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured = _install(monkeypatch, argv=[], answers=["list files", "y"])

    assert cli.main() == 0
    assert captured["adapter"].commands == ["ls"]
    assert "Executing command: ls" in capsys.readouterr().out


def test_main_empty_question_exits_without_request(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured = _install(monkeypatch, argv=[], answers=[""])

    assert cli.main() == 0
    assert captured["clients"] == []
    assert "No question provided." in capsys.readouterr().out


def test_main_requires_api_key(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    config = _fake_config()
    config.api_key = None
    captured = _install(monkeypatch, argv=["list files"], config=config)

    assert cli.main() == 2
    assert captured["clients"] == []
    assert "No API key configured" in capsys.readouterr().out


def test_main_rejects_unsupported_shell(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(monkeypatch, argv=["list files"])

    def reject(_name: str) -> None:
        raise ValueError("Unsupported shell adapter: cmd")

    monkeypatch.setattr(cli, "create_shell_adapter", reject)

    assert cli.main() == 2
    assert "Unsupported shell adapter" in capsys.readouterr().out


def test_main_explain_then_suggest_then_execute(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured = _install(
        monkeypatch,
        argv=["list files in current directory"],
        answers=["e", "s", "", "show hidden files too", "Y"],
        replies=["ls", "Lists directory entries.", "```sh\nls -a\n```"],
    )

    assert cli.main() == 0

    out = capsys.readouterr().out
    assert "Explain: Lists directory entries." in out
    assert captured["adapter"].commands == ["ls -a"]


def test_main_copy_decision_writes_clipboard(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    captured = _install(monkeypatch, argv=["list files"], answers=["c"])

    assert cli.main() == 0
    assert captured["copied"] == ["ls"]
    assert captured["adapter"].commands == []
    assert "Copied to clipboard." in capsys.readouterr().out


def test_main_always_copy_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _install(monkeypatch, argv=["--copy", "list files"], answers=["y"])

    assert cli.main() == 0
    assert captured["copied"] == ["ls"]
    assert captured["adapter"].commands == ["ls"]


def test_main_transport_error_is_fatal(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(monkeypatch, argv=["list files"])

    class BrokenClient:
        def __init__(self, **_kwargs: object) -> None:
            pass

        def complete(self, _conversation: Conversation) -> CompletionReply:
            raise TransportError("no choices returned, retry later")

    monkeypatch.setattr(cli, "ChatClient", BrokenClient)

    assert cli.main() == 1
    assert "Model request failed: no choices returned" in capsys.readouterr().out


def test_main_clipboard_error_is_fatal(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(monkeypatch, argv=["list files"], answers=["c"])

    def broken_copy(_text: str) -> None:
        raise ClipboardError("Could not copy to clipboard: no backend")

    monkeypatch.setattr(cli, "copy_to_clipboard", broken_copy)

    assert cli.main() == 1
    assert "no backend" in capsys.readouterr().out


def test_main_reports_non_zero_exit(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(monkeypatch, argv=["list files"], answers=["y"], adapter=FakeAdapter(returncode=2))

    assert cli.main() == 2
    assert "Command exited with status 2" in capsys.readouterr().out


def test_main_reports_launch_failure(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(
        monkeypatch,
        argv=["list files"],
        answers=["y"],
        adapter=FakeAdapter(returncode=127, executed=False),
    )

    assert cli.main() == 1
    assert "Command could not be run: failed to launch fake" in capsys.readouterr().out


def test_main_unrecognized_decision_ends_quietly(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _install(monkeypatch, argv=["list files"], answers=["n"])

    assert cli.main() == 0
    assert captured["adapter"].commands == []
    assert captured["copied"] == []


def test_main_eof_at_decision_prompt_ends_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, argv=["list files"], answers=[])

    def eof(_prompt: str = "") -> str:
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    assert cli.main() == 0


def test_main_malformed_api_url_is_a_fatal_model_error(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _install(monkeypatch, argv=["--api-url", "api.example.com/v1", "list files"])
    monkeypatch.setattr(cli, "ChatClient", ChatClient)

    assert cli.main() == 1
    assert "Model request failed: transport error" in capsys.readouterr().out
