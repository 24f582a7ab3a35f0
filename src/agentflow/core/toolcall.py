"""Tool-calling policy: ask the model for tool calls, run them, record results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentflow.core.agent import Agent, AgentPolicy
from agentflow.errors import LLMError, ProviderError, ToolArgumentsError, ToolCallRequiredError
from agentflow.tools.registry import ToolRegistry
from agentflow.tools.terminate import TERMINATE_TOOL_NAME
from agentflow.types.agent import AgentState
from agentflow.types.messages import Message, ToolCall, ToolChoice

if TYPE_CHECKING:
    from agentflow.core.planning import PlanTracker

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an agent that can execute tool calls"
NEXT_STEP_PROMPT = "If you want to stop interaction, use `terminate` tool/function call."
NO_CONTENT_RESULT = "No content or commands to execute"


class ToolCallPolicy(AgentPolicy):
    """Think by asking for tool calls; act by dispatching them in order.

    A call to one of ``special_tool_names`` that succeeds finishes the agent.
    When a :class:`PlanTracker` is attached, each turn is framed with the
    current plan and tool calls are attributed to the step in progress.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        tool_choice: ToolChoice | str = ToolChoice.AUTO,
        special_tool_names: list[str] | None = None,
        plan_tracker: PlanTracker | None = None,
    ) -> None:
        self.registry = registry
        self.tool_choice = ToolChoice(tool_choice)
        self.special_tool_names = list(special_tool_names) if special_tool_names is not None else [TERMINATE_TOOL_NAME]
        self.plan_tracker = plan_tracker
        self.tool_calls: list[ToolCall] = []

    async def prepare(self, agent: Agent, request: str | None) -> None:
        self.tool_calls = []
        if self.plan_tracker is not None and request:
            await self.plan_tracker.create_initial_plan(agent, self, request)
            return
        await super().prepare(agent, request)

    # ------------------------------------------------------------------
    # Think
    # ------------------------------------------------------------------

    async def think(self, agent: Agent) -> bool:
        prompt = agent.next_step_prompt
        if self.plan_tracker is not None:
            prompt = self.plan_tracker.frame_prompt(prompt)
            self.plan_tracker.begin_step()
        if prompt:
            agent.memory.add_message(Message.user(prompt))

        try:
            response = await agent.llm.ask_tool(
                agent.messages,
                [Message.system(agent.system_prompt)] if agent.system_prompt else None,
                tools=self.registry.get_definitions(),
                tool_choice=self.tool_choice,
            )
        except (ProviderError, LLMError) as e:
            logger.error("%s's thinking process failed: %s", agent.name, e)
            agent.memory.add_message(Message.assistant(f"Error encountered while processing: {e}"))
            raise

        self.tool_calls = list(response.tool_calls)
        content = response.content or None
        logger.info("%s's thoughts: %s", agent.name, content)
        logger.info("%s selected %d tools to use", agent.name, len(self.tool_calls))
        if self.tool_calls:
            logger.debug("Tools being prepared: %s", ", ".join(tc.name for tc in self.tool_calls))

        if self.tool_choice == ToolChoice.NONE:
            if self.tool_calls:
                logger.warning("%s tried to use tools when they weren't available", agent.name)
                self.tool_calls = []
            if content:
                agent.memory.add_message(Message.assistant(content))
                return True
            return False

        if self.tool_calls:
            agent.memory.add_message(Message.from_tool_calls(self.tool_calls, content))
        elif content:
            agent.memory.add_message(Message.assistant(content))

        if self.plan_tracker is not None:
            self.plan_tracker.track_calls(self.tool_calls, self.special_tool_names)

        if self.tool_choice == ToolChoice.REQUIRED and not self.tool_calls:
            return True
        if self.tool_choice == ToolChoice.AUTO and not self.tool_calls:
            return bool(content)
        return bool(self.tool_calls)

    # ------------------------------------------------------------------
    # Act
    # ------------------------------------------------------------------

    async def act(self, agent: Agent) -> str:
        if not self.tool_calls:
            if self.tool_choice == ToolChoice.REQUIRED:
                raise ToolCallRequiredError()
            last = agent.memory.last()
            return (last.content if last else None) or NO_CONTENT_RESULT

        results: list[str] = []
        for call in self.tool_calls:
            result = await self.execute_tool(agent, call)
            logger.info("Tool '%s' completed. Result: %s", call.name, result)
            agent.memory.add_message(Message.tool(result, name=call.name or "unknown", tool_call_id=call.id or "unknown"))
            results.append(result)

        step_result = "\n\n".join(results)
        if self.plan_tracker is not None:
            self.plan_tracker.complete_calls(self.tool_calls, step_result)
        return step_result

    async def execute_tool(self, agent: Agent, call: ToolCall) -> str:
        """Dispatch one call and describe the outcome as an observation string."""
        if not call.name:
            return "Error: Invalid command format"

        if not self.registry.has(call.name):
            return f"Error: Unknown tool '{call.name}'"

        try:
            args = call.parse_arguments()
        except ToolArgumentsError as e:
            logger.warning("%s", e)
            return str(e)

        logger.info("Activating tool: '%s'", call.name)
        result = await self.registry.execute(call.name, args)
        if result.is_error:
            logger.warning("Tool '%s' encountered a problem: %s", call.name, result.error)
            return str(result)

        if self.is_special_tool(call.name):
            logger.info("Special tool '%s' has completed the task", call.name)
            agent.state = AgentState.FINISHED

        if result.output is not None and result.output != "":
            return f"Observed output of cmd `{call.name}` executed:\n{result.output}"
        return f"Cmd `{call.name}` completed with no output"

    def is_special_tool(self, name: str) -> bool:
        return name.lower() in {n.lower() for n in self.special_tool_names}
