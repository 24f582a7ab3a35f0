"""Planning flow: create a plan, then hand each open step to an executor agent."""

from __future__ import annotations

import logging
import re

from agentflow.core.agent import Agent
from agentflow.core.llm import LLMClient
from agentflow.core.planning import new_plan_id
from agentflow.errors import AgentError, FlowError, ToolArgumentsError, ToolError
from agentflow.flow.base import AgentsInput, BaseFlow
from agentflow.tools.planning import PLANNING_TOOL_NAME, PlanStep, PlanStore, create_planning_tool
from agentflow.types.agent import AgentState, StepStatus
from agentflow.types.messages import Message, ToolChoice

logger = logging.getLogger(__name__)

PLAN_SYSTEM_PROMPT = (
    "You are a planning assistant. Create a concise, actionable plan with clear steps. "
    "Focus on key milestones rather than detailed sub-steps. "
    "Optimize for clarity and efficiency."
)
SUMMARY_SYSTEM_PROMPT = "You are a planning assistant. Your task is to summarize the completed plan."
DEFAULT_PLAN_STEPS = ["Analyze request", "Execute task", "Verify results"]
SUMMARY_FALLBACK = "Plan completed. Error generating summary."

_STEP_TYPE_RE = re.compile(r"\[([A-Z_]+)\]")


def step_type_of(text: str) -> str | None:
    """Lowercased ``[TAG]`` marker of a step, if it has one."""
    match = _STEP_TYPE_RE.search(text)
    return match.group(1).lower() if match else None


def default_plan_title(request: str) -> str:
    return f"Plan for: {request[:50]}{'...' if len(request) > 50 else ''}"


class PlanningFlow(BaseFlow):
    """Drives executor agents through the steps of one plan, in order."""

    def __init__(
        self,
        agents: AgentsInput,
        *,
        llm: LLMClient,
        plan_store: PlanStore | None = None,
        primary_agent_key: str | None = None,
        executors: list[str] | None = None,
        plan_id: str | None = None,
    ) -> None:
        super().__init__(agents, primary_agent_key=primary_agent_key)
        self.llm = llm
        self.plan_store = plan_store if plan_store is not None else PlanStore()
        self.planning_tool = create_planning_tool(self.plan_store)
        self.executor_keys = list(executors) if executors else list(self.agents.keys())
        self.active_plan_id = plan_id or new_plan_id()
        self.current_step_index: int | None = None

    def get_executor(self, step_type: str | None = None) -> Agent:
        """Agent keyed by the step type, else the first known executor, else the primary agent."""
        if step_type and step_type in self.agents:
            return self.agents[step_type]
        for key in self.executor_keys:
            if key in self.agents:
                return self.agents[key]
        if self.primary_agent is not None:
            return self.primary_agent
        raise FlowError("No suitable executor agent available")

    async def execute(self, input_text: str) -> str:
        try:
            if self.primary_agent is None:
                raise FlowError("No primary agent available")

            if input_text:
                await self.create_initial_plan(input_text)
                if not self.plan_store.has_plan(self.active_plan_id):
                    logger.error("Plan creation failed. Plan ID %s not found", self.active_plan_id)
                    return f"Failed to create plan for: {input_text}"

            result = ""
            while True:
                try:
                    current = self._next_step()
                except ToolError as e:
                    logger.error("Error getting current step info: %s", e)
                    result += f"Error getting current step info: {e}\n"
                    break

                if current is None:
                    self.current_step_index = None
                    result += await self.finalize_plan()
                    break

                index, step = current
                self.current_step_index = index
                executor = self.get_executor(step_type_of(step.text))
                result += await self.execute_step(executor, index, step) + "\n"

                if executor.state == AgentState.FINISHED:
                    break

            return result
        except Exception as e:
            logger.exception("Error in PlanningFlow")
            return f"Execution failed: {e}"

    async def create_initial_plan(self, request: str) -> None:
        """Ask the model to plan; fall back to a generic three-step plan."""
        logger.info("Creating initial plan with ID: %s", self.active_plan_id)

        response = await self.llm.ask_tool(
            [Message.user(f"Create a reasonable plan with clear steps to accomplish the task: {request}")],
            [Message.system(PLAN_SYSTEM_PROMPT)],
            tools=[self.planning_tool.to_definition()],
            tool_choice=ToolChoice.REQUIRED,
        )

        for call in response.tool_calls:
            if call.name != PLANNING_TOOL_NAME:
                continue
            try:
                args = call.parse_arguments()
            except ToolArgumentsError:
                logger.error("Failed to parse tool arguments: %s", call.arguments)
                continue
            args["plan_id"] = self.active_plan_id
            try:
                result = await self.planning_tool.execute(args)
            except ToolError as e:
                logger.warning("Plan creation call failed: %s", e)
            else:
                logger.info("Plan creation result: %s", result)
            break

        if not self.plan_store.has_plan(self.active_plan_id):
            logger.warning("Creating default plan")
            self.plan_store.create(self.active_plan_id, default_plan_title(request), DEFAULT_PLAN_STEPS)

    async def execute_step(self, executor: Agent, index: int, step: PlanStep) -> str:
        """Run one step on ``executor`` and record the outcome in the plan."""
        if executor.state == AgentState.ERROR:
            logger.warning("Resetting executor %s after a failed step", executor.name)
            executor.reset()

        step_prompt = (
            f"CURRENT PLAN STATUS:\n{self.plan_store.render(self.active_plan_id)}\n\n"
            f"YOUR CURRENT TASK:\n"
            f'You are now working on step {index}: "{step.text}"\n\n'
            "Please execute this step using the appropriate tools. "
            "When you're done, provide a summary of what you accomplished."
        )

        try:
            step_result = await executor.run(step_prompt)
        except Exception as e:
            logger.exception("Error executing step %d", index)
            self._mark(index, StepStatus.BLOCKED, notes=str(e))
            return f"Error executing step {index}: {e}"

        self._mark(index, StepStatus.COMPLETED)
        return step_result

    async def finalize_plan(self) -> str:
        """Summarize the finished plan via the model."""
        plan_text = self.plan_store.render(self.active_plan_id)
        try:
            summary = await self.llm.ask(
                [
                    Message.user(
                        "The plan has been completed. Here is the final plan status:\n\n"
                        f"{plan_text}\n\n"
                        "Please provide a summary of what was accomplished and any final thoughts."
                    )
                ],
                [Message.system(SUMMARY_SYSTEM_PROMPT)],
            )
        except AgentError as e:
            logger.error("Error finalizing plan: %s", e)
            return SUMMARY_FALLBACK
        return f"Plan completed:\n\n{summary}"

    def _next_step(self) -> tuple[int, PlanStep] | None:
        found = self.plan_store.first_open_step(self.active_plan_id)
        if found is None:
            return None
        index, step = found
        if step.status != StepStatus.IN_PROGRESS:
            self.plan_store.mark_step(self.active_plan_id, index, StepStatus.IN_PROGRESS)
        return index, step

    def _mark(self, index: int, status: StepStatus, *, notes: str | None = None) -> None:
        try:
            self.plan_store.mark_step(self.active_plan_id, index, status, notes)
        except ToolError as e:
            logger.warning("Failed to update plan status: %s", e)
        else:
            logger.info("Marked step %d as %s in plan %s", index, status, self.active_plan_id)
