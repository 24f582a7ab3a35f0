"""Tests for error hierarchy."""

from __future__ import annotations

import pytest

from agentflow.errors import (
    AgentError,
    AgentStateError,
    ConfigurationError,
    ErrorCategory,
    FlowError,
    LLMError,
    LLMTimeoutError,
    ProviderError,
    ToolArgumentsError,
    ToolCallRequiredError,
    ToolError,
    ToolNotFoundError,
    ToolTimeoutError,
)


class TestAgentError:
    def test_basic(self) -> None:
        e = AgentError("test error")
        assert str(e) == "test error"
        assert e.category == ErrorCategory.INTERNAL
        assert not e.retryable
        assert e.details == {}

    def test_with_details(self) -> None:
        e = AgentError("test", details={"key": "val"}, retryable=True)
        assert e.retryable
        assert e.details["key"] == "val"

    def test_repr(self) -> None:
        r = repr(AgentError("test error", category=ErrorCategory.LLM))
        assert "AgentError" in r
        assert "test error" in r

    def test_can_be_raised_and_caught(self) -> None:
        with pytest.raises(AgentError, match="boom"):
            raise AgentError("boom")


class TestBoundaryErrors:
    def test_llm_error_retryable_by_default(self) -> None:
        e = LLMError("empty")
        assert e.category == ErrorCategory.LLM
        assert e.retryable

    def test_provider_error_fields(self) -> None:
        e = ProviderError("rate limited", provider="openai", status_code=429)
        assert e.provider == "openai"
        assert e.status_code == 429
        assert e.category == ErrorCategory.PROVIDER

    def test_timeout_is_provider_error(self) -> None:
        e = LLMTimeoutError(60.0, provider="mock")
        assert isinstance(e, ProviderError)
        assert e.timeout == 60.0
        assert "60.0s" in str(e)


class TestToolErrors:
    def test_tool_error(self) -> None:
        e = ToolError("bad", tool_name="planning")
        assert e.tool_name == "planning"
        assert e.category == ErrorCategory.TOOL

    def test_not_found_message(self) -> None:
        e = ToolNotFoundError("ghost")
        assert str(e) == "Tool ghost is invalid"
        assert isinstance(e, ToolError)

    def test_timeout(self) -> None:
        e = ToolTimeoutError("slow", 5.0)
        assert e.retryable
        assert "slow" in str(e)

    def test_arguments_error_message(self) -> None:
        e = ToolArgumentsError("planning", "{oops")
        assert str(e) == "Error parsing arguments for planning: Invalid JSON format"
        assert e.details["raw"] == "{oops"


class TestControlErrors:
    def test_tool_call_required(self) -> None:
        e = ToolCallRequiredError()
        assert str(e) == "Tool calls required but none provided"
        assert e.category == ErrorCategory.POLICY

    def test_agent_state(self) -> None:
        e = AgentStateError("Cannot run agent from state: running", state="running")
        assert e.state == "running"
        assert e.category == ErrorCategory.STATE

    @pytest.mark.parametrize("cls,category", [
        (FlowError, ErrorCategory.FLOW),
        (ConfigurationError, ErrorCategory.CONFIGURATION),
    ])
    def test_categories(self, cls: type[AgentError], category: ErrorCategory) -> None:
        e = cls("nope")
        assert e.category == category
        assert not e.retryable
