"""Tool base types and abstractions."""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from agentflow.errors import ToolError
from agentflow.types.messages import ToolDefinition


class ToolParam(BaseModel):
    """Pydantic model for tool parameter validation."""

    model_config = {"extra": "forbid"}


@dataclass(slots=True)
class ToolSpec:
    """Specification for a tool."""

    name: str
    description: str
    parameters: dict[str, Any]

    def to_definition(self) -> ToolDefinition:
        """Convert to ToolDefinition for LLM consumption."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


@dataclass
class Tool:
    """A registered tool with its execute function."""

    spec: ToolSpec
    execute: Callable[[dict[str, Any]], Awaitable[Any]]
    tags: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.spec.name

    def to_definition(self) -> ToolDefinition:
        return self.spec.to_definition()

    def to_param(self) -> dict[str, Any]:
        return self.to_definition().to_param()


@dataclass
class ToolResult:
    """Outcome of a tool invocation.

    Any of ``output``, ``error`` and ``system`` may be set. Two results can be
    added together: output and error concatenate, while ``system`` text only
    survives when at most one side carries it.
    """

    output: Any = None
    error: str | None = None
    system: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def has_content(self) -> bool:
        return self.output is not None or self.error is not None or self.system is not None

    def combine(self, other: ToolResult) -> ToolResult:
        return ToolResult(
            output=_combine_field(self.output, other.output),
            error=_combine_field(self.error, other.error),
            system=_combine_field(self.system, other.system, concatenate=False),
        )

    def __add__(self, other: ToolResult) -> ToolResult:
        if not isinstance(other, ToolResult):
            return NotImplemented
        return self.combine(other)

    def replace(self, **changes: Any) -> ToolResult:
        """Return a copy of this result with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def __str__(self) -> str:
        return f"Error: {self.error}" if self.error else str(self.output)


@dataclass
class ToolFailure(ToolResult):
    """A ToolResult produced when dispatch or execution failed."""


def _combine_field(left: Any, right: Any, *, concatenate: bool = True) -> Any:
    if left is not None and right is not None:
        if not concatenate:
            raise ToolError("Cannot combine tool results")
        try:
            return left + right
        except TypeError as e:
            raise ToolError("Cannot combine tool results") from e
    return right if left is None else left
