"""Agentflow error hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of error for classification and handling."""

    LLM = "llm"
    PROVIDER = "provider"
    TOOL = "tool"
    POLICY = "policy"
    STATE = "state"
    FLOW = "flow"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class AgentError(Exception):
    """Base error for all agentflow exceptions."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.details: dict[str, Any] = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, category={self.category!r})"


class LLMError(AgentError):
    """Error from LLM interaction (empty response, malformed output, etc.)."""

    def __init__(self, message: str, *, retryable: bool = True, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.LLM, retryable=retryable, **kwargs)


class ProviderError(AgentError):
    """Error from an LLM provider (rate limit, network, auth)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, category=ErrorCategory.PROVIDER, retryable=retryable, **kwargs)
        self.provider = provider
        self.status_code = status_code


class LLMTimeoutError(ProviderError):
    """The model boundary did not answer within the allotted time."""

    def __init__(self, timeout: float, *, provider: str | None = None) -> None:
        super().__init__(
            f"LLM request timed out after {timeout}s",
            provider=provider,
            retryable=True,
        )
        self.timeout = timeout


class ToolError(AgentError):
    """Error during tool execution."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        retryable: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, category=ErrorCategory.TOOL, retryable=retryable, **kwargs)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Requested tool does not exist."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool {tool_name} is invalid", tool_name=tool_name)


class ToolTimeoutError(ToolError):
    """Tool execution timed out."""

    def __init__(self, tool_name: str, timeout: float) -> None:
        super().__init__(
            f"Tool '{tool_name}' timed out after {timeout}s",
            tool_name=tool_name,
            retryable=True,
        )
        self.timeout = timeout


class ToolArgumentsError(ToolError):
    """A tool call's argument payload is not a JSON object."""

    def __init__(self, tool_name: str, raw: str | None = None) -> None:
        super().__init__(
            f"Error parsing arguments for {tool_name}: Invalid JSON format",
            tool_name=tool_name,
            details={"raw": raw} if raw is not None else None,
        )


class ToolCallRequiredError(AgentError):
    """Tool choice was ``required`` but the model proposed no calls."""

    def __init__(self, message: str = "Tool calls required but none provided") -> None:
        super().__init__(message, category=ErrorCategory.POLICY, retryable=False)


class AgentStateError(AgentError):
    """Operation not allowed in the agent's current lifecycle state."""

    def __init__(self, message: str, *, state: str | None = None) -> None:
        super().__init__(message, category=ErrorCategory.STATE, retryable=False)
        self.state = state


class FlowError(AgentError):
    """A flow could not be built or could not pick an agent."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.FLOW, retryable=False)


class ConfigurationError(AgentError):
    """Invalid or missing configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.CONFIGURATION, retryable=False)
