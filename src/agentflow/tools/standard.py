"""Standard tool registry creation."""

from __future__ import annotations

import logging
from collections.abc import Callable

from agentflow.tools.base import Tool
from agentflow.tools.completion import create_completion_tool
from agentflow.tools.planning import PlanStore, create_planning_tool
from agentflow.tools.registry import ToolRegistry
from agentflow.tools.terminate import create_terminate_tool

logger = logging.getLogger(__name__)

# Names accepted in flow configuration files.
TOOL_NAMES = ("planning", "terminate", "chat")


def create_standard_registry(
    tool_names: list[str] | tuple[str, ...] = TOOL_NAMES,
    *,
    plan_store: PlanStore | None = None,
    default_timeout: float = 60.0,
) -> ToolRegistry:
    """Create a registry holding the named built-in tools.

    Unknown names are skipped with a warning. The ``planning`` tool is bound to
    ``plan_store`` so several agents (and a flow) can share one set of plans.
    """
    factories: dict[str, Callable[[], Tool]] = {
        "planning": lambda: create_planning_tool(plan_store if plan_store is not None else PlanStore()),
        "terminate": create_terminate_tool,
        "chat": create_completion_tool,
    }

    registry = ToolRegistry(default_timeout=default_timeout)
    for name in tool_names:
        factory = factories.get(name)
        if factory is None:
            logger.warning("Unknown tool name in configuration: %s", name)
            continue
        registry.register(factory())
    return registry
