"""Factories for the two stock agent kinds."""

from __future__ import annotations

from agentflow.core.agent import DEFAULT_DUPLICATE_THRESHOLD, Agent
from agentflow.core.llm import LLMClient
from agentflow.core.memory import Memory
from agentflow.core.planning import (
    PLANNING_NEXT_STEP_PROMPT,
    PLANNING_SYSTEM_PROMPT,
    PlanTracker,
)
from agentflow.core.toolcall import NEXT_STEP_PROMPT, SYSTEM_PROMPT, ToolCallPolicy
from agentflow.tools.completion import create_completion_tool
from agentflow.tools.planning import PlanStore, create_planning_tool
from agentflow.tools.registry import ToolRegistry
from agentflow.tools.terminate import TERMINATE_TOOL_NAME, create_terminate_tool
from agentflow.types.messages import ToolChoice

TOOLCALL_MAX_STEPS = 30
PLANNING_MAX_STEPS = 20


def create_toolcall_agent(
    llm: LLMClient,
    *,
    name: str = "toolcall",
    description: str | None = None,
    registry: ToolRegistry | None = None,
    system_prompt: str | None = None,
    next_step_prompt: str | None = None,
    max_steps: int = TOOLCALL_MAX_STEPS,
    tool_choice: ToolChoice | str = ToolChoice.AUTO,
    special_tool_names: list[str] | None = None,
    memory: Memory | None = None,
    duplicate_threshold: int = DEFAULT_DUPLICATE_THRESHOLD,
) -> Agent:
    """Tool-calling agent; by default it can answer via ``create_chat_completion`` and stop via ``terminate``."""
    if registry is None:
        registry = ToolRegistry(create_completion_tool(), create_terminate_tool())
    policy = ToolCallPolicy(
        registry,
        tool_choice=tool_choice,
        special_tool_names=special_tool_names,
    )
    return Agent(
        name,
        policy=policy,
        llm=llm,
        description=description or "an agent that can execute tool calls.",
        system_prompt=system_prompt or SYSTEM_PROMPT,
        next_step_prompt=next_step_prompt or NEXT_STEP_PROMPT,
        memory=memory,
        max_steps=max_steps,
        duplicate_threshold=duplicate_threshold,
    )


def create_planning_agent(
    llm: LLMClient,
    *,
    name: str = "planning",
    description: str | None = None,
    plan_store: PlanStore | None = None,
    registry: ToolRegistry | None = None,
    plan_id: str | None = None,
    system_prompt: str | None = None,
    next_step_prompt: str | None = None,
    max_steps: int = PLANNING_MAX_STEPS,
    memory: Memory | None = None,
    duplicate_threshold: int = DEFAULT_DUPLICATE_THRESHOLD,
) -> Agent:
    """Agent that plans first and then works through its plan.

    The ``planning`` tool in ``registry`` must be bound to ``plan_store``; when
    no registry is given one is built with ``planning`` and ``terminate``. A
    registry lacking the planning tool gets one added.
    """
    store = plan_store if plan_store is not None else PlanStore()
    if registry is None:
        registry = ToolRegistry(create_planning_tool(store), create_terminate_tool())
    elif not registry.has("planning"):
        registry.register(create_planning_tool(store))

    tracker = PlanTracker(store) if plan_id is None else PlanTracker(store, plan_id=plan_id)
    policy = ToolCallPolicy(
        registry,
        tool_choice=ToolChoice.AUTO,
        special_tool_names=[TERMINATE_TOOL_NAME],
        plan_tracker=tracker,
    )
    return Agent(
        name,
        policy=policy,
        llm=llm,
        description=description or "An agent that creates and manages plans to solve tasks",
        system_prompt=system_prompt or PLANNING_SYSTEM_PROMPT,
        next_step_prompt=next_step_prompt or PLANNING_NEXT_STEP_PROMPT,
        memory=memory,
        max_steps=max_steps,
        duplicate_threshold=duplicate_threshold,
    )
