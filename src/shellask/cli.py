"""Command-line interface for shellask."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from typing import cast

from .agent.loop import InteractionLoop
from .agent.models import SessionOutcome
from .clipboard import ClipboardError, copy_to_clipboard
from .config import AppConfig
from .llm.client import ChatClient, TransportError
from .shell import CommandResult, ShellAdapter, create_shell_adapter

LOGGER = logging.getLogger(__name__)

DECISION_PROMPT = "Execute this command? [Y/n/s(suggest)/e(explain)/c(copy)]: "


class CLIArgs(argparse.Namespace):
    question: str | None
    shell: str | None
    api_key: str | None
    proxy: str | None
    model: str | None
    api_url: str | None
    copy: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellask",
        description="Ask a language model for a shell command, then review and run it",
    )
    parser.add_argument("--shell", help="Interpreter used to run commands, e.g. bash or zsh")
    parser.add_argument("--api-key", dest="api_key", help="API key for the completion endpoint")
    parser.add_argument("--proxy", help="HTTP proxy URL for the completion request")
    parser.add_argument("--model", help="Model name sent with each request")
    parser.add_argument("--api-url", dest="api_url", help="Chat-completion endpoint URL")
    parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy every proposed command to the clipboard",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests to stderr")
    parser.add_argument("question", nargs="?", help="Question to turn into a shell command")
    return parser


def apply_overrides(config: AppConfig, args: CLIArgs) -> AppConfig:
    """Let explicit command-line flags win over env and file settings."""
    if args.shell:
        config.shell = args.shell
    if args.api_key:
        config.api_key = args.api_key
    if args.proxy:
        config.proxy = args.proxy
    if args.model:
        config.model = args.model
    if args.api_url:
        config.api_url = args.api_url
    if args.copy:
        config.always_copy = True
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> int:
    parser = build_parser()
    args = cast(CLIArgs, parser.parse_args())
    config = apply_overrides(AppConfig.from_env(), args)
    configure_logging(config.log_level)

    if not config.api_key:
        print("No API key configured. Pass --api-key or set SHELLASK_API_KEY.")
        return 2

    try:
        adapter = create_shell_adapter(config.shell)
    except ValueError as exc:
        print(exc)
        return 2

    try:
        question = args.question if args.question is not None else input("Enter your question: ")
    except (EOFError, KeyboardInterrupt):
        print()
        return 0
    if not question.strip():
        print("No question provided.")
        return 0

    client = ChatClient(
        api_key=config.api_key,
        model=config.model,
        api_url=config.api_url,
        proxy=config.proxy,
        timeout=config.timeout,
    )
    loop = InteractionLoop(
        client=client,
        execute_command=_command_executor(adapter),
        copy_to_clipboard=copy_to_clipboard,
        read_decision=_read_decision,
        read_suggestion=_read_suggestion,
        show_candidate=_show_candidate,
        show_explanation=_show_explanation,
        system_prompt=config.system_prompt,
        always_copy=config.always_copy,
    )

    try:
        outcome = loop.run(question)
    except TransportError as exc:
        LOGGER.error("session_aborted", extra={"reason": str(exc)})
        print(f"Model request failed: {exc}")
        return 1
    except ClipboardError as exc:
        LOGGER.error("session_aborted", extra={"reason": str(exc)})
        print(exc)
        return 1
    except EOFError:
        print()
        return 0
    except KeyboardInterrupt:
        print()
        return 130

    LOGGER.debug(
        "session_finished",
        extra={"decision": outcome.decision, "transport_calls": outcome.transport_calls},
    )
    return _report_outcome(outcome)


def _command_executor(adapter: ShellAdapter) -> Callable[[str], CommandResult]:
    def execute(command: str) -> CommandResult:
        print(f"\nExecuting command: {command}")
        return adapter.execute(command)

    return execute


def _report_outcome(outcome: SessionOutcome) -> int:
    if outcome.decision == "copy":
        print("Copied to clipboard.")
        return 0

    result = outcome.execution
    if result is None:
        return 0
    if not result.executed:
        print(f"Command could not be run: {result.error}")
        return 1
    if result.succeeded:
        return 0
    print(f"Command exited with status {result.returncode}")
    # negative codes mean the child was killed by a signal
    return result.returncode if result.returncode > 0 else 1


def _read_decision() -> str:
    return input(DECISION_PROMPT)


def _read_suggestion() -> str:
    return input("Enter your suggestion: ")


def _show_candidate(command: str) -> None:
    print(f"\n{command}\n")


def _show_explanation(explanation: str) -> None:
    print(f"\nExplain: {explanation}")


if __name__ == "__main__":
    raise SystemExit(main())
