"""OpenAI-compatible chat completions provider using httpx.

Talks to ``{base_url}/chat/completions`` with either OpenAI bearer auth or
Azure ``api-key`` auth.
"""

from __future__ import annotations

from typing import Any

import httpx

from agentflow.errors import ProviderError
from agentflow.types.messages import (
    ChatOptions,
    ChatResponse,
    Message,
    StopReason,
    TokenUsage,
    ToolCall,
)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"
API_TYPES = ("openai", "azure")


def _describe_request_error(e: httpx.RequestError) -> str:
    """Build a descriptive error message for httpx request errors.

    httpx.ReadTimeout and similar errors often have empty str(e),
    so we fall back to the exception type name and include the
    chained cause when available.
    """
    msg = str(e)
    if not msg:
        msg = type(e).__name__
    if e.__cause__ and str(e.__cause__):
        msg = f"{msg} (caused by {type(e.__cause__).__name__}: {e.__cause__})"
    return msg


class OpenAIProvider:
    """OpenAI (or Azure OpenAI) chat completions over httpx."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_type: str = "openai",
        api_version: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float = 600.0,
    ) -> None:
        if not api_key:
            raise ProviderError("API key not set", provider=api_type, retryable=False)
        if api_type not in API_TYPES:
            raise ProviderError(f"Unsupported api_type: {api_type}", provider=api_type, retryable=False)
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._api_type = api_type
        self._api_version = api_version
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout
        self._client = self._create_client()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_type == "azure":
            headers["api-key"] = self._api_key
        else:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _create_client(self) -> httpx.AsyncClient:
        """Create a fresh httpx client."""
        params = {"api-version": self._api_version} if self._api_type == "azure" and self._api_version else None
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            headers=self._headers(),
            params=params,
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the client, recreating it if closed."""
        if self._client.is_closed:
            self._client = self._create_client()
        return self._client

    @property
    def name(self) -> str:
        return self._api_type

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    async def chat(
        self,
        messages: list[Message],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        if options and options.stream:
            raise ProviderError("Streaming responses are not supported", provider=self.name, retryable=False)

        client = self._ensure_client()
        body = self._build_body(messages, options)

        try:
            response = await client.post(self.endpoint, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ProviderError(
                f"{self.name} API error {status}: {e.response.text[:500]}",
                provider=self.name, status_code=status, retryable=status in (429, 500, 502, 503),
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(
                f"{self.name} request error: {_describe_request_error(e)}",
                provider=self.name, retryable=True,
            ) from e
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned a non-JSON body", provider=self.name, retryable=False,
            ) from e

        return self._parse_response(data, body["model"])

    def _build_body(self, messages: list[Message], options: ChatOptions | None) -> dict[str, Any]:
        model = (options and options.model) or self._model
        body: dict[str, Any] = {"model": model, "messages": [m.to_dict() for m in messages]}

        max_tokens = (options and options.max_tokens) or self._max_tokens
        if max_tokens:
            body["max_tokens"] = max_tokens
        temperature = options.temperature if options and options.temperature is not None else self._temperature
        if temperature is not None:
            body["temperature"] = temperature
        if options and options.tools:
            body["tools"] = [t.to_param() for t in options.tools]
            if options.tool_choice:
                body["tool_choice"] = str(options.tool_choice)
        return body

    def _parse_response(self, data: Any, model: str) -> ChatResponse:
        if not isinstance(data, dict) or not data.get("choices"):
            raise ProviderError(f"{self.name} response has no choices", provider=self.name, retryable=True)
        choice = data["choices"][0]
        message = choice.get("message") or {}
        content = message.get("content") or ""

        tool_calls = [ToolCall.from_dict(tc) for tc in message.get("tool_calls") or []]

        usage_data = data.get("usage") or {}
        usage = TokenUsage(
            input_tokens=usage_data.get("prompt_tokens", 0),
            output_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        )

        finish = choice.get("finish_reason", "stop")
        stop_reason = StopReason.TOOL_USE if finish == "tool_calls" else (StopReason.MAX_TOKENS if finish == "length" else StopReason.END_TURN)

        return ChatResponse(content=content, tool_calls=tool_calls, usage=usage, model=model, stop_reason=stop_reason)

    async def close(self) -> None:
        await self._client.aclose()
