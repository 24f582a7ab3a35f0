"""Shared types for agentflow."""

from agentflow.types.agent import AgentState, StepStatus
from agentflow.types.messages import (
    ChatOptions,
    ChatResponse,
    Message,
    Role,
    StopReason,
    TokenUsage,
    ToolCall,
    ToolChoice,
    ToolDefinition,
)

__all__ = [
    "AgentState",
    "ChatOptions",
    "ChatResponse",
    "Message",
    "Role",
    "StepStatus",
    "StopReason",
    "TokenUsage",
    "ToolCall",
    "ToolChoice",
    "ToolDefinition",
]
