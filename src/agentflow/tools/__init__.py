"""Tool system for agentflow."""

from agentflow.tools.base import Tool, ToolFailure, ToolParam, ToolResult, ToolSpec
from agentflow.tools.planning import Plan, PlanStep, PlanStore, create_planning_tool
from agentflow.tools.registry import ToolRegistry
from agentflow.tools.standard import create_standard_registry

__all__ = [
    "Plan",
    "PlanStep",
    "PlanStore",
    "Tool",
    "ToolFailure",
    "ToolParam",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "create_planning_tool",
    "create_standard_registry",
]
