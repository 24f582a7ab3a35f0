"""Core message types for LLM communication."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from agentflow.errors import ToolArgumentsError


class Role(StrEnum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolChoice(StrEnum):
    """How strongly the model is asked to call tools."""

    NONE = "none"
    AUTO = "auto"
    REQUIRED = "required"


class StopReason(StrEnum):
    """Why the LLM stopped generating."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"


@dataclass
class ToolCall:
    """A tool invocation requested by the LLM.

    ``arguments`` is kept as the raw JSON string the model produced; it is
    only decoded when the call is dispatched.
    """

    id: str
    name: str
    arguments: str = "{}"
    type: str = "function"

    def parse_arguments(self) -> dict[str, Any]:
        """Decode the argument payload, which must be a JSON object."""
        if not self.arguments or not self.arguments.strip():
            return {}
        try:
            args = json.loads(self.arguments)
        except (json.JSONDecodeError, TypeError) as e:
            raise ToolArgumentsError(self.name, self.arguments) from e
        if not isinstance(args, dict):
            raise ToolArgumentsError(self.name, self.arguments)
        return args

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        func = data.get("function", {})
        arguments = func.get("arguments", "{}")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(
            id=data.get("id", ""),
            name=func.get("name", ""),
            arguments=arguments,
            type=data.get("type", "function"),
        )


@dataclass
class ToolDefinition:
    """Schema definition for a tool."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_param(self) -> dict[str, Any]:
        """Convert to the function-calling schema format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class TokenUsage:
    """Token consumption metrics."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Message:
    """A conversation message."""

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    name: str | None = None
    tool_call_id: str | None = None

    def __post_init__(self) -> None:
        self.role = Role(self.role)
        if self.role == Role.TOOL and not (self.name and self.tool_call_id):
            raise ValueError("Tool messages require both a name and a tool_call_id")

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": str(self.role)}
        if self.content is not None:
            data["content"] = self.content
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.name is not None:
            data["name"] = self.name
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Build a message from its wire form, validating role and payload."""
        role = data.get("role")
        if role not in {r.value for r in Role}:
            raise ValueError(f"Invalid role: {role!r}")
        raw_calls = data.get("tool_calls")
        if data.get("content") is None and not raw_calls:
            raise ValueError("Message must contain either 'content' or 'tool_calls'")
        return cls(
            role=Role(role),
            content=data.get("content"),
            tool_calls=[ToolCall.from_dict(tc) for tc in raw_calls] if raw_calls else None,
            name=data.get("name"),
            tool_call_id=data.get("tool_call_id"),
        )

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def assistant(cls, content: str | None = None) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def tool(cls, content: str, *, name: str, tool_call_id: str) -> Message:
        return cls(role=Role.TOOL, content=content, name=name, tool_call_id=tool_call_id)

    @classmethod
    def from_tool_calls(cls, tool_calls: list[ToolCall], content: str | None = None) -> Message:
        """Assistant message carrying tool-call requests; content may be empty."""
        return cls(role=Role.ASSISTANT, content=content or None, tool_calls=list(tool_calls))


@dataclass
class ChatOptions:
    """Options for an LLM chat request."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    tools: list[ToolDefinition] | None = None
    tool_choice: ToolChoice | None = None
    stream: bool = False


@dataclass
class ChatResponse:
    """Response from an LLM chat request."""

    content: str = ""
    stop_reason: StopReason | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: TokenUsage | None = None
    model: str | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
