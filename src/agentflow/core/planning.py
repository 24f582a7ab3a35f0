"""Plan tracking for planning agents.

:class:`PlanTracker` is attached to a :class:`ToolCallPolicy` to make an agent
plan-driven: it creates the initial plan, frames every turn with the plan
report, and marks steps in progress / completed as tool calls run. The
current step is always located through :meth:`PlanStore.first_open_step`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from agentflow.core.agent import STUCK_PROMPT
from agentflow.errors import ToolError
from agentflow.tools.planning import PLANNING_TOOL_NAME, PlanStore
from agentflow.types.agent import StepStatus
from agentflow.types.messages import Message, ToolCall, ToolChoice

if TYPE_CHECKING:
    from agentflow.core.agent import Agent
    from agentflow.core.toolcall import ToolCallPolicy

logger = logging.getLogger(__name__)

PLANNING_SYSTEM_PROMPT = """
You are an expert Planning Agent tasked with solving problems efficiently through structured plans.
Your job is:
1. Analyze requests to understand the task scope
2. Create a clear, actionable plan that makes meaningful progress with the `planning` tool
3. Execute steps using available tools as needed
4. Track progress and adapt plans when necessary
5. Use `terminate` to conclude immediately when the task is complete

Available tools will vary by task but may include:
- `planning`: Create, update, and track plans (commands: create, update, mark_step, etc.)
- `terminate`: End the task when complete
Break tasks into logical steps with clear outcomes. Avoid excessive detail or sub-steps.
Think about dependencies and verification methods.
Know when to conclude - don't continue thinking once objectives are met.
"""

PLANNING_NEXT_STEP_PROMPT = """
Based on the current state, what's your next action?
Choose the most efficient path forward:
1. Is the plan sufficient, or does it need refinement?
2. Can you execute the next step immediately?
3. Is the task complete? If so, use `terminate` right away.

Be concise in your reasoning, then select the appropriate tool or action.
"""

MISSING_PLAN_MESSAGE = "Error: Parameter `plan_id` is required for command: create"


def new_plan_id() -> str:
    """Unique plan id; plans from several agents may share one store."""
    return f"plan_{uuid.uuid4().hex[:12]}"


class ExecutionStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(slots=True)
class StepExecution:
    """Attributes one tool call to the plan step that was active when it was made."""

    step_index: int
    tool_name: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    result: str | None = None


@dataclass
class PlanTracker:
    """Keeps a planning agent's plan in step with its tool calls."""

    store: PlanStore
    plan_id: str = field(default_factory=new_plan_id)
    step_execution_tracker: dict[str, StepExecution] = field(default_factory=dict)
    current_step_index: int | None = None

    def plan_report(self) -> str | None:
        if not self.store.has_plan(self.plan_id):
            return None
        return self.store.render(self.plan_id)

    def frame_prompt(self, next_step_prompt: str | None) -> str | None:
        """Prefix the turn's prompt with the current plan report, when a plan exists."""
        report = self.plan_report()
        if report is None:
            return next_step_prompt
        prompt = next_step_prompt or ""
        # A stuck notice stays in front of the plan report.
        if prompt.startswith(STUCK_PROMPT):
            rest = prompt[len(STUCK_PROMPT):].lstrip("\n")
            return f"{STUCK_PROMPT}\nCURRENT PLAN STATUS:\n{report}\n\n{rest}"
        return f"CURRENT PLAN STATUS:\n{report}\n\n{prompt}"

    def begin_step(self) -> int | None:
        """Find the first open step, mark it in progress, and remember its index."""
        self.current_step_index = None
        if not self.store.has_plan(self.plan_id):
            return None
        found = self.store.first_open_step(self.plan_id)
        if found is None:
            return None
        index, step = found
        if step.status != StepStatus.IN_PROGRESS:
            self.store.mark_step(self.plan_id, index, StepStatus.IN_PROGRESS)
        self.current_step_index = index
        return index

    def track_calls(self, tool_calls: list[ToolCall], special_tool_names: list[str]) -> None:
        if self.current_step_index is None:
            return
        special = {n.lower() for n in special_tool_names}
        for call in tool_calls:
            if call.name == PLANNING_TOOL_NAME or call.name.lower() in special:
                continue
            self.step_execution_tracker[call.id] = StepExecution(
                step_index=self.current_step_index,
                tool_name=call.name,
            )

    def complete_calls(self, tool_calls: list[ToolCall], result: str) -> None:
        """Record results for tracked calls and mark their steps completed."""
        for call in tool_calls:
            execution = self.step_execution_tracker.get(call.id)
            if execution is None or execution.status == ExecutionStatus.COMPLETED:
                continue
            execution.status = ExecutionStatus.COMPLETED
            execution.result = result
            try:
                self.store.mark_step(self.plan_id, execution.step_index, StepStatus.COMPLETED)
            except ToolError as e:
                logger.warning("Failed to update plan status: %s", e)
            else:
                logger.info("Marked step %d as completed in plan %s", execution.step_index, self.plan_id)

    async def create_initial_plan(self, agent: Agent, policy: ToolCallPolicy, request: str) -> None:
        """Ask the model for a plan and execute its first ``planning`` call."""
        logger.info("Creating initial plan with ID: %s", self.plan_id)
        prompt = Message.user(f"Analyze the request and create a plan with ID {self.plan_id}: {request}")
        agent.memory.add_message(prompt)

        response = await agent.llm.ask_tool(
            [prompt],
            [Message.system(agent.system_prompt)] if agent.system_prompt else None,
            tools=policy.registry.get_definitions(),
            tool_choice=ToolChoice.REQUIRED,
        )

        if response.tool_calls:
            agent.memory.add_message(Message.from_tool_calls(response.tool_calls, response.content))
        elif response.content:
            agent.memory.add_message(Message.assistant(response.content))

        for call in response.tool_calls:
            if call.name != PLANNING_TOOL_NAME:
                continue
            result = await policy.execute_tool(agent, call)
            logger.info("Executed tool %s with result: %s", call.name, result)
            agent.memory.add_message(Message.tool(result, name=call.name, tool_call_id=call.id or "unknown"))
            break

        if not self.store.has_plan(self.plan_id):
            active = self.store.active_plan_id
            if active is not None:
                logger.info("Tracking plan %s created under a different ID", active)
                self.plan_id = active
                return
            logger.warning("No plan created from initial request")
            agent.memory.add_message(Message.assistant(MISSING_PLAN_MESSAGE))
