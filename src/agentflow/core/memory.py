"""Bounded conversation memory for an agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from agentflow.types.messages import Message, Role

DEFAULT_MAX_MESSAGES = 100


@dataclass
class Memory:
    """Ordered message log capped at ``max_messages``; oldest entries go first."""

    messages: list[Message] = field(default_factory=list)
    max_messages: int = DEFAULT_MAX_MESSAGES

    def __post_init__(self) -> None:
        if self.max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self._trim()

    def __len__(self) -> int:
        return len(self.messages)

    def add_message(self, message: Message) -> None:
        self.messages.append(message)
        self._trim()

    def add_messages(self, messages: list[Message]) -> None:
        self.messages.extend(messages)
        self._trim()

    def clear(self) -> None:
        self.messages.clear()

    def get_recent_messages(self, n: int) -> list[Message]:
        if n <= 0:
            return []
        return self.messages[-n:]

    def last(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def by_role(self, role: Role) -> list[Message]:
        return [m for m in self.messages if m.role == role]

    def to_dict_list(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.messages]

    def _trim(self) -> None:
        overflow = len(self.messages) - self.max_messages
        if overflow > 0:
            del self.messages[:overflow]
