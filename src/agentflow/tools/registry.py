"""Tool registry for managing and executing tools."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from typing import Any

from agentflow.errors import ToolError, ToolNotFoundError, ToolTimeoutError
from agentflow.tools.base import Tool, ToolFailure, ToolResult
from agentflow.types.messages import ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-indexed tool collection that dispatches calls and normalizes failures."""

    def __init__(self, *tools: Tool, default_timeout: float = 60.0) -> None:
        self._tools: dict[str, Tool] = {}
        self._default_timeout = default_timeout
        self.add_tools(*tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def tool_count(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def add_tools(self, *tools: Tool) -> ToolRegistry:
        for tool in tools:
            self.register(tool)
        return self

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        return [tool.to_definition() for tool in self._tools.values()]

    def to_params(self) -> list[dict[str, Any]]:
        return [tool.to_param() for tool in self._tools.values()]

    async def execute(
        self,
        tool_name: str,
        args: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        """Run a tool by name. Failures come back as ToolFailure, never raised."""
        tool = self._tools.get(tool_name)
        if tool is None:
            return ToolFailure(error=str(ToolNotFoundError(tool_name)))

        effective_timeout = timeout or self._default_timeout
        try:
            result = await asyncio.wait_for(
                tool.execute(args or {}),
                timeout=effective_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Tool %s timed out after %ss", tool_name, effective_timeout)
            return ToolFailure(error=str(ToolTimeoutError(tool_name, effective_timeout)))
        except ToolError as e:
            return ToolFailure(error=str(e))
        except Exception as e:
            logger.exception("Tool %s raised an unexpected error", tool_name)
            return ToolFailure(error=f"Unknown error: {e}")

        if isinstance(result, ToolResult):
            return result
        return ToolResult(output=result)
