"""Mock LLM provider for testing."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from agentflow.types.messages import (
    ChatOptions,
    ChatResponse,
    Message,
    StopReason,
    TokenUsage,
    ToolCall,
)


def make_tool_call(name: str, arguments: dict[str, Any] | str | None = None, call_id: str | None = None) -> ToolCall:
    """Build a ToolCall, serializing dict arguments the way a model would."""
    if arguments is None:
        payload = "{}"
    elif isinstance(arguments, str):
        payload = arguments
    else:
        payload = json.dumps(arguments)
    return ToolCall(id=call_id or f"call_{name}", name=name, arguments=payload)


@dataclass
class MockProvider:
    """Mock LLM provider for testing."""

    responses: list[ChatResponse] = field(default_factory=list)
    response_fn: Callable[
        [list[Message], ChatOptions | None],
        Awaitable[ChatResponse],
    ] | None = None
    default_response: ChatResponse = field(
        default_factory=lambda: ChatResponse(
            content="Mock response",
            stop_reason=StopReason.END_TURN,
            usage=TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
        )
    )
    call_history: list[tuple[list[Message], ChatOptions | None]] = field(default_factory=list)
    closed: bool = field(default=False, init=False)
    _response_index: int = field(default=0, init=False)

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_count(self) -> int:
        return len(self.call_history)

    async def chat(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        self.call_history.append((list(messages), options))
        if self.response_fn is not None:
            return await self.response_fn(messages, options)
        if self._response_index < len(self.responses):
            resp = self.responses[self._response_index]
            self._response_index += 1
            return resp
        return self.default_response

    def add_response(
        self,
        content: str = "",
        tool_calls: list[ToolCall] | None = None,
        stop_reason: StopReason = StopReason.END_TURN,
        usage: TokenUsage | None = None,
    ) -> MockProvider:
        self.responses.append(
            ChatResponse(
                content=content,
                tool_calls=list(tool_calls or []),
                stop_reason=stop_reason,
                usage=usage or TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
            )
        )
        return self

    def add_tool_response(self, tool_calls: list[ToolCall], content: str = "") -> MockProvider:
        return self.add_response(content=content, tool_calls=tool_calls, stop_reason=StopReason.TOOL_USE)

    def add_tool_call(self, name: str, arguments: dict[str, Any] | str | None = None, call_id: str | None = None) -> MockProvider:
        """Queue a response proposing a single tool call."""
        return self.add_tool_response([make_tool_call(name, arguments, call_id)])

    def reset(self) -> None:
        self.call_history.clear()
        self._response_index = 0

    async def close(self) -> None:
        self.closed = True
