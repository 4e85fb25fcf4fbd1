"""Operator decision loop around a growing model conversation."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Protocol

from shellask.agent.models import (
    CompletionReply,
    Conversation,
    Decision,
    Message,
    SessionOutcome,
)
from shellask.config import DEFAULT_SYSTEM_PROMPT
from shellask.shell import CommandResult

LOGGER = logging.getLogger(__name__)

ReadDecision = Callable[[], str]
ReadSuggestion = Callable[[], str]
ShowText = Callable[[str], None]
ExecuteCommand = Callable[[str], CommandResult]
CopyToClipboard = Callable[[str], None]

_DECISIONS: dict[str, Decision] = {
    "": "execute",
    "y": "execute",
    "c": "copy",
    "e": "explain",
    "s": "suggest",
}
_CODE_FENCE = re.compile(r"^\s*```[\w+-]*[ \t]*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


class CompletionTransport(Protocol):
    def complete(self, conversation: Conversation) -> CompletionReply: ...


def parse_decision(token: str | None) -> Decision:
    """Map one operator token to a decision; unknown tokens end the session."""
    normalized = (token or "").strip().lower()
    return _DECISIONS.get(normalized, "none")


def command_from_reply(content: str) -> str:
    """Unwrap a single fenced code block around a command reply."""
    match = _CODE_FENCE.match(content)
    if match:
        return match.group("body").strip()
    return content.strip()


class InteractionLoop:
    """Show a candidate command, read a decision, and act on it until done.

    Explain keeps the candidate under review; suggest replaces it with the
    model's revised command. Execute and copy are one-shot and end the run.
    Transport and clipboard errors propagate to the caller.
    """

    def __init__(
        self,
        *,
        client: CompletionTransport,
        execute_command: ExecuteCommand,
        copy_to_clipboard: CopyToClipboard,
        read_decision: ReadDecision,
        read_suggestion: ReadSuggestion,
        show_candidate: ShowText,
        show_explanation: ShowText,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        always_copy: bool = False,
    ) -> None:
        self.client = client
        self.execute_command = execute_command
        self.copy_to_clipboard = copy_to_clipboard
        self.read_decision = read_decision
        self.read_suggestion = read_suggestion
        self.show_candidate = show_candidate
        self.show_explanation = show_explanation
        self.system_prompt = system_prompt
        self.always_copy = always_copy

    def run(self, question: str) -> SessionOutcome:
        if not question.strip():
            LOGGER.info("session_skipped_empty_question")
            return SessionOutcome(decision=None)

        conversation = Conversation(self.system_prompt, question)
        outcome = SessionOutcome(decision=None, conversation=conversation)
        candidate = command_from_reply(self._ask(conversation, outcome))
        present_candidate = True

        while True:
            outcome.candidate = candidate
            if present_candidate and self.always_copy:
                self.copy_to_clipboard(candidate)
            self.show_candidate(candidate)

            decision = parse_decision(self.read_decision())
            outcome.decision = decision
            LOGGER.debug(
                "operator_decision",
                extra={"decision": decision, "messages": len(conversation)},
            )

            if decision == "execute":
                outcome.execution = self.execute_command(candidate)
                return outcome
            if decision == "copy":
                self.copy_to_clipboard(candidate)
                return outcome
            if decision == "explain":
                conversation.append(Message(role="user", content=f"explain {candidate}"))
                self.show_explanation(self._ask(conversation, outcome).strip())
                present_candidate = False
                continue
            if decision == "suggest":
                suggestion = self._collect_suggestion()
                conversation.append(Message(role="user", content=f"suggestion: {suggestion}"))
                candidate = command_from_reply(self._ask(conversation, outcome))
                present_candidate = True
                continue
            return outcome

    def _ask(self, conversation: Conversation, outcome: SessionOutcome) -> str:
        reply = self.client.complete(conversation)
        outcome.transport_calls += 1
        conversation.append(Message(role="assistant", content=reply.content))
        return reply.content

    def _collect_suggestion(self) -> str:
        while True:
            suggestion = self.read_suggestion().strip()
            if suggestion:
                return suggestion
