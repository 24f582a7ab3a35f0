"""Plan store and the ``planning`` tool.

Plans are kept in memory as an ordered list of :class:`PlanStep` records.
The text report produced by :func:`render_plan` is for the model and for
humans only; code that needs to know where a plan stands uses the
structured queries on :class:`PlanStore` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from agentflow.errors import ToolError
from agentflow.tools.base import Tool, ToolParam, ToolResult, ToolSpec
from agentflow.types.agent import StepStatus

logger = logging.getLogger(__name__)

PLANNING_TOOL_NAME = "planning"

PLANNING_TOOL_DESCRIPTION = """
A planning tool that allows the agent to create and manage plans for solving complex tasks.
The tool provides functionality for creating plans, updating plan steps, and tracking progress.
"""

COMMANDS = ("create", "update", "list", "get", "set_active", "mark_step", "delete")


# ---------------------------------------------------------------------------
# Plan records
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PlanStep:
    """One step of a plan."""

    text: str
    status: StepStatus = StepStatus.NOT_STARTED
    notes: str = ""


@dataclass(slots=True)
class Plan:
    """A titled, ordered list of steps."""

    plan_id: str
    title: str
    steps: list[PlanStep] = field(default_factory=list)

    def count(self, status: StepStatus) -> int:
        return sum(1 for step in self.steps if step.status == status)

    @property
    def completed_count(self) -> int:
        return self.count(StepStatus.COMPLETED)

    @property
    def is_done(self) -> bool:
        return not any(step.status.is_open for step in self.steps)


def render_plan(plan: Plan) -> str:
    """Human-readable plan report with progress summary and step markers."""
    output = f"Plan: {plan.title} (ID: {plan.plan_id})\n"
    output += "=" * len(output) + "\n\n"

    total = len(plan.steps)
    completed = plan.completed_count
    if total > 0:
        output += f"Progress: {completed}/{total} steps completed ({completed / total * 100:.1f}%)\n"
    else:
        output += f"Progress: {completed}/{total} steps completed (0%)\n"
    output += (
        f"Status: {completed} completed, "
        f"{plan.count(StepStatus.IN_PROGRESS)} in progress, "
        f"{plan.count(StepStatus.BLOCKED)} blocked, "
        f"{plan.count(StepStatus.NOT_STARTED)} not started\n\n"
    )
    output += "Steps:\n"

    for i, step in enumerate(plan.steps):
        output += f"{i}. {step.status.marker} {step.text}\n"
        if step.notes:
            output += f"   Notes: {step.notes}\n"

    return output


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class PlanStore:
    """In-memory table of plans with a single active-plan pointer.

    Every command validates its inputs before touching any state and raises
    :class:`ToolError` when they are unusable.
    """

    def __init__(self) -> None:
        self._plans: dict[str, Plan] = {}
        self._active_plan_id: str | None = None

    # -- structured queries ------------------------------------------------

    @property
    def active_plan_id(self) -> str | None:
        return self._active_plan_id

    @property
    def plan_ids(self) -> list[str]:
        return list(self._plans.keys())

    def has_plan(self, plan_id: str | None) -> bool:
        return plan_id is not None and plan_id in self._plans

    def get_plan(self, plan_id: str | None) -> Plan | None:
        if plan_id is None:
            return None
        return self._plans.get(plan_id)

    def first_open_step(self, plan_id: str) -> tuple[int, PlanStep] | None:
        """First step that is not started or in progress, with its index."""
        plan = self._require_plan(plan_id)
        for index, step in enumerate(plan.steps):
            if step.status.is_open:
                return index, step
        return None

    def render(self, plan_id: str | None = None) -> str:
        return render_plan(self._resolve(plan_id))

    # -- commands ----------------------------------------------------------

    def create(self, plan_id: str | None, title: str | None, steps: Any) -> str:
        if not plan_id:
            raise ToolError("Parameter `plan_id` is required for command: create", tool_name=PLANNING_TOOL_NAME)
        if plan_id in self._plans:
            raise ToolError(
                f"A plan with ID '{plan_id}' already exists. Use 'update' to modify existing plans.",
                tool_name=PLANNING_TOOL_NAME,
            )
        if not title:
            raise ToolError("Parameter `title` is required for command: create", tool_name=PLANNING_TOOL_NAME)
        if not steps or not _is_string_list(steps):
            raise ToolError(
                "Parameter `steps` must be a non-empty list of strings for command: create",
                tool_name=PLANNING_TOOL_NAME,
            )

        plan = Plan(plan_id=plan_id, title=title, steps=[PlanStep(text=s) for s in steps])
        self._plans[plan_id] = plan
        self._active_plan_id = plan_id
        logger.info("Created plan %s with %d steps", plan_id, len(plan.steps))
        return f"Plan created successfully with ID: {plan_id}\n\n{render_plan(plan)}"

    def update(self, plan_id: str | None, title: str | None = None, steps: Any = None) -> str:
        if not plan_id:
            raise ToolError("Parameter `plan_id` is required for command: update", tool_name=PLANNING_TOOL_NAME)
        plan = self._require_plan(plan_id)
        if steps is not None and not _is_string_list(steps):
            raise ToolError(
                "Parameter `steps` must be a list of strings for command: update",
                tool_name=PLANNING_TOOL_NAME,
            )

        if title:
            plan.title = title
        if steps is not None:
            old_steps = plan.steps
            new_steps: list[PlanStep] = []
            for i, text in enumerate(steps):
                if i < len(old_steps) and old_steps[i].text == text:
                    new_steps.append(old_steps[i])
                else:
                    new_steps.append(PlanStep(text=text))
            plan.steps = new_steps

        return f"Plan updated successfully: {plan_id}\n\n{render_plan(plan)}"

    def list_plans(self) -> str:
        if not self._plans:
            return "No plans available. Create a plan with the 'create' command."

        output = "Available plans:\n"
        for plan_id, plan in self._plans.items():
            marker = " (active)" if plan_id == self._active_plan_id else ""
            output += (
                f"• {plan_id}{marker}: {plan.title} - "
                f"{plan.completed_count}/{len(plan.steps)} steps completed\n"
            )
        return output

    def get(self, plan_id: str | None = None) -> str:
        return render_plan(self._resolve(plan_id))

    def set_active(self, plan_id: str | None) -> str:
        if not plan_id:
            raise ToolError("Parameter `plan_id` is required for command: set_active", tool_name=PLANNING_TOOL_NAME)
        plan = self._require_plan(plan_id)
        self._active_plan_id = plan_id
        return f"Plan '{plan_id}' is now the active plan.\n\n{render_plan(plan)}"

    def mark_step(
        self,
        plan_id: str | None = None,
        step_index: int | None = None,
        step_status: StepStatus | str | None = None,
        step_notes: str | None = None,
    ) -> str:
        plan = self._resolve(plan_id)
        if step_index is None:
            raise ToolError("Parameter `step_index` is required for command: mark_step", tool_name=PLANNING_TOOL_NAME)
        if isinstance(step_index, bool) or not isinstance(step_index, int) or not 0 <= step_index < len(plan.steps):
            raise ToolError(
                f"Invalid step_index: {step_index}. Valid indices range from 0 to {len(plan.steps) - 1}.",
                tool_name=PLANNING_TOOL_NAME,
            )
        status: StepStatus | None = None
        if step_status:
            try:
                status = StepStatus(step_status)
            except ValueError:
                raise ToolError(
                    f"Invalid step_status: {step_status}. "
                    "Valid statuses are: not_started, in_progress, completed, blocked",
                    tool_name=PLANNING_TOOL_NAME,
                ) from None

        step = plan.steps[step_index]
        if status is not None:
            step.status = status
        if step_notes:
            step.notes = step_notes

        return f"Step {step_index} updated in plan '{plan.plan_id}'.\n\n{render_plan(plan)}"

    def delete(self, plan_id: str | None) -> str:
        if not plan_id:
            raise ToolError("Parameter `plan_id` is required for command: delete", tool_name=PLANNING_TOOL_NAME)
        self._require_plan(plan_id)
        del self._plans[plan_id]
        if self._active_plan_id == plan_id:
            self._active_plan_id = None
        return f"Plan '{plan_id}' has been deleted."

    # -- helpers -------------------------------------------------------------

    def _require_plan(self, plan_id: str) -> Plan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise ToolError(f"No plan found with ID: {plan_id}", tool_name=PLANNING_TOOL_NAME)
        return plan

    def _resolve(self, plan_id: str | None) -> Plan:
        if not plan_id:
            if not self._active_plan_id:
                raise ToolError(
                    "No active plan. Please specify a plan_id or set an active plan.",
                    tool_name=PLANNING_TOOL_NAME,
                )
            plan_id = self._active_plan_id
        return self._require_plan(plan_id)


# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------


class PlanningParams(ToolParam):
    """Arguments accepted by the ``planning`` tool."""

    command: str
    plan_id: str | None = None
    title: str | None = None
    steps: list[Any] | None = None
    step_index: int | None = None
    step_status: str | None = None
    step_notes: str | None = None


PLANNING_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "command": {
            "description": (
                "The command to execute. Available commands: "
                "create, update, list, get, set_active, mark_step, delete."
            ),
            "enum": list(COMMANDS),
            "type": "string",
        },
        "plan_id": {
            "description": (
                "Unique identifier for the plan. Required for create, update, set_active, "
                "and delete commands. Optional for get and mark_step (uses active plan if not specified)."
            ),
            "type": "string",
        },
        "title": {
            "description": "Title for the plan. Required for create command, optional for update command.",
            "type": "string",
        },
        "steps": {
            "description": "List of plan steps. Required for create command, optional for update command.",
            "type": "array",
            "items": {"type": "string"},
        },
        "step_index": {
            "description": "Index of the step to update (0-based). Required for mark_step command.",
            "type": "integer",
        },
        "step_status": {
            "description": "Status to set for a step. Used with mark_step command.",
            "enum": [s.value for s in StepStatus],
            "type": "string",
        },
        "step_notes": {
            "description": "Additional notes for a step. Optional for mark_step command.",
            "type": "string",
        },
    },
    "required": ["command"],
    "additionalProperties": False,
}


def dispatch_planning_command(store: PlanStore, params: PlanningParams) -> str:
    """Run one planning command against the store."""
    match params.command:
        case "create":
            return store.create(params.plan_id, params.title, params.steps)
        case "update":
            return store.update(params.plan_id, params.title, params.steps)
        case "list":
            return store.list_plans()
        case "get":
            return store.get(params.plan_id)
        case "set_active":
            return store.set_active(params.plan_id)
        case "mark_step":
            return store.mark_step(params.plan_id, params.step_index, params.step_status, params.step_notes)
        case "delete":
            return store.delete(params.plan_id)
    raise ToolError(
        f"Unrecognized command: {params.command}. Allowed commands are: {', '.join(COMMANDS)}",
        tool_name=PLANNING_TOOL_NAME,
    )


def create_planning_tool(store: PlanStore) -> Tool:
    """Create the ``planning`` tool bound to a plan store."""

    async def planning(args: dict[str, Any]) -> ToolResult:
        try:
            params = PlanningParams.model_validate(args)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "arguments"
            raise ToolError(
                f"Invalid arguments for planning: {location}: {first['msg']}",
                tool_name=PLANNING_TOOL_NAME,
            ) from e
        return ToolResult(output=dispatch_planning_command(store, params))

    return Tool(
        spec=ToolSpec(
            name=PLANNING_TOOL_NAME,
            description=PLANNING_TOOL_DESCRIPTION,
            parameters=PLANNING_PARAMETERS,
        ),
        execute=planning,
        tags=["planning"],
    )
