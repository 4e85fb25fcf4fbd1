"""Data models shared by the transport and the interaction loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from shellask.shell import CommandResult

Role = Literal["system", "user", "assistant"]
Decision = Literal["execute", "copy", "explain", "suggest", "none"]


@dataclass(frozen=True, slots=True)
class Message:
    """A single role-tagged chat message."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class Conversation:
    """Append-only dialogue history sent in full on every model call.

    The first message is always the system-priming instruction. There is no
    way to edit, remove or reorder messages once they are appended.
    """

    def __init__(self, system_prompt: str, question: str) -> None:
        self._messages: list[Message] = [
            Message(role="system", content=system_prompt),
            Message(role="user", content=question),
        ]

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def to_payload(self) -> list[dict[str, str]]:
        return [message.to_dict() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)


@dataclass(slots=True)
class CompletionReply:
    """First-choice content of a chat-completion response plus metadata."""

    content: str
    id: str | None = None
    model: str | None = None
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class SessionOutcome:
    """What a single run of the interaction loop ended with."""

    decision: Decision | None
    candidate: str | None = None
    conversation: Conversation | None = None
    transport_calls: int = 0
    execution: CommandResult | None = None
