"""Model boundary used by agents and flows.

:class:`LLMClient` wraps an :class:`LLMProvider` and offers the two calls the
rest of the package needs: ``ask`` for plain text and ``ask_tool`` for
function-calling turns. It validates inputs, applies a timeout, and retries
retryable provider errors with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from agentflow.errors import LLMError, LLMTimeoutError, ProviderError
from agentflow.providers.base import LLMProvider
from agentflow.types.messages import ChatOptions, ChatResponse, Message, ToolChoice, ToolDefinition

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
MAX_RETRIES = 2
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 30.0

MessageLike = Message | dict[str, Any]
ToolLike = ToolDefinition | dict[str, Any]


def format_messages(messages: list[MessageLike]) -> list[Message]:
    """Normalize a mix of Message objects and wire dicts, validating each."""
    formatted: list[Message] = []
    for message in messages:
        if isinstance(message, Message):
            if message.content is None and not message.tool_calls:
                raise ValueError("Message must contain either 'content' or 'tool_calls'")
            formatted.append(message)
        elif isinstance(message, dict):
            formatted.append(Message.from_dict(message))
        else:
            raise TypeError(f"Unsupported message type: {type(message).__name__}")
    return formatted


def _to_definition(tool: ToolLike) -> ToolDefinition:
    if isinstance(tool, ToolDefinition):
        return tool
    if isinstance(tool, dict) and isinstance(tool.get("function"), dict):
        func = tool["function"]
        return ToolDefinition(
            name=func["name"],
            description=func.get("description", ""),
            parameters=func.get("parameters") or {"type": "object", "properties": {}},
        )
    raise ValueError("Each tool must be a ToolDefinition or a dict with a 'function' entry")


class LLMClient:
    """Text and tool-calling requests against one provider."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    async def ask(
        self,
        messages: list[MessageLike],
        system_msgs: list[MessageLike] | None = None,
        *,
        stream: bool = False,
        temperature: float | None = None,
    ) -> str:
        """Send a prompt and return the response text."""
        if stream:
            raise LLMError("Streaming responses are not supported", retryable=False)

        conversation = self._conversation(messages, system_msgs)
        options = self._options(temperature)
        response = await self._call(conversation, options, self.timeout)
        if not response.content:
            raise LLMError("Empty or invalid response from LLM")
        return response.content

    async def ask_tool(
        self,
        messages: list[MessageLike],
        system_msgs: list[MessageLike] | None = None,
        *,
        tools: list[ToolLike] | None = None,
        tool_choice: ToolChoice | str = ToolChoice.AUTO,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> ChatResponse:
        """Send a prompt with tool definitions and return the raw response."""
        try:
            choice = ToolChoice(tool_choice)
        except ValueError:
            raise ValueError(f"Invalid tool_choice: {tool_choice}") from None

        definitions = [_to_definition(t) for t in tools or []]
        conversation = self._conversation(messages, system_msgs)
        options = self._options(temperature)
        options.tools = definitions or None
        options.tool_choice = choice if definitions else None

        response = await self._call(conversation, options, timeout or self.timeout)
        if response.tool_calls and choice == ToolChoice.NONE:
            logger.debug("Model proposed %d tool calls with tool_choice=none", len(response.tool_calls))
        return response

    async def close(self) -> None:
        await self.provider.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _conversation(self, messages: list[MessageLike], system_msgs: list[MessageLike] | None) -> list[Message]:
        conversation = format_messages(list(system_msgs or [])) + format_messages(list(messages))
        if not conversation:
            raise ValueError("At least one message is required")
        return conversation

    def _options(self, temperature: float | None) -> ChatOptions:
        return ChatOptions(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature if temperature is not None else self.temperature,
        )

    async def _call(self, messages: list[Message], options: ChatOptions, timeout: float) -> ChatResponse:
        try:
            return await asyncio.wait_for(self._call_with_retry(messages, options), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("LLM request to %s timed out after %ss", self.provider.name, timeout)
            raise LLMTimeoutError(timeout, provider=self.provider.name) from None

    async def _call_with_retry(self, messages: list[Message], options: ChatOptions) -> ChatResponse:
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.provider.chat(messages, options)
            except ProviderError as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay = min(self.retry_base_delay * (2 ** attempt), RETRY_MAX_DELAY)
                logger.warning("LLM call failed (%s), retrying in %.1fs", e, delay)
                await asyncio.sleep(delay)
                continue
            except LLMError:
                raise
            except Exception as e:
                raise LLMError(f"Unexpected error during LLM call: {str(e) or type(e).__name__}") from e

            if response.usage:
                logger.debug(
                    "LLM call used %d input / %d output tokens",
                    response.usage.input_tokens, response.usage.output_tokens,
                )
            return response

        raise LLMError("LLM call failed after all retries")
