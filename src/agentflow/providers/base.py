"""LLM provider protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from agentflow.types.messages import ChatOptions, ChatResponse, Message


@runtime_checkable
class LLMProvider(Protocol):
    """Anything that can answer a chat-completion request."""

    @property
    def name(self) -> str: ...

    async def chat(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse: ...

    async def close(self) -> None: ...
