"""LLM providers."""

from agentflow.providers.base import LLMProvider
from agentflow.providers.mock import MockProvider, make_tool_call
from agentflow.providers.openai import OpenAIProvider

__all__ = ["LLMProvider", "MockProvider", "OpenAIProvider", "make_tool_call"]
