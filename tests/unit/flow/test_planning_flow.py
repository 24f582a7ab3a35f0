"""Tests for PlanningFlow."""

from __future__ import annotations

import pytest

from agentflow.core.agent import Agent
from agentflow.core.factory import create_toolcall_agent
from agentflow.core.llm import LLMClient
from agentflow.errors import FlowError
from agentflow.flow.base import BaseFlow, FlowType, normalize_agents
from agentflow.flow.factory import create_flow
from agentflow.flow.planning import (
    DEFAULT_PLAN_STEPS,
    SUMMARY_FALLBACK,
    PlanningFlow,
    default_plan_title,
    step_type_of,
)
from agentflow.providers.mock import MockProvider
from agentflow.tools.planning import PlanStore
from agentflow.types.agent import AgentState, StepStatus
from agentflow.types.messages import Role, ToolChoice

PLAN_ID = "plan_test"


def _executor(
    name: str = "executor",
    *,
    provider: MockProvider | None = None,
    max_steps: int = 1,
    **kwargs,
) -> tuple[Agent, MockProvider]:
    provider = provider or MockProvider()
    agent = create_toolcall_agent(LLMClient(provider, retry_base_delay=0.0), name=name, max_steps=max_steps, **kwargs)
    return agent, provider


def _planner(steps: list[str], summary: str = "All done.") -> MockProvider:
    provider = MockProvider()
    provider.add_tool_call("planning", {"command": "create", "plan_id": "ignored", "title": "Trip", "steps": steps})
    provider.add_response(content=summary)
    return provider


def _flow(planner: MockProvider, agents, **kwargs) -> PlanningFlow:
    return PlanningFlow(
        agents,
        llm=LLMClient(planner, retry_base_delay=0.0),
        plan_id=PLAN_ID,
        **kwargs,
    )


class TestHelpers:
    @pytest.mark.parametrize("text,expected", [
        ("[SEARCH] find flights", "search"),
        ("Book [CODE_REVIEW] later", "code_review"),
        ("No tag here", None),
        ("[lower] ignored", None),
    ])
    def test_step_type_of(self, text: str, expected: str | None) -> None:
        assert step_type_of(text) == expected

    def test_default_plan_title(self) -> None:
        assert default_plan_title("short") == "Plan for: short"
        assert default_plan_title("x" * 60) == f"Plan for: {'x' * 50}..."

    def test_normalize_agents(self, llm: LLMClient) -> None:
        a = create_toolcall_agent(llm, name="a")
        b = create_toolcall_agent(llm, name="b")
        assert normalize_agents(a) == {"default": a}
        assert normalize_agents([a, b]) == {"agent_0": a, "agent_1": b}
        assert normalize_agents({"x": a}) == {"x": a}

    def test_create_flow(self, llm: LLMClient) -> None:
        flow = create_flow(FlowType.PLANNING, create_toolcall_agent(llm), llm=llm)
        assert isinstance(flow, PlanningFlow)
        assert flow.primary_agent_key == "default"

    def test_create_flow_unknown_type(self, llm: LLMClient) -> None:
        with pytest.raises(FlowError, match="Unknown flow type: swarm"):
            create_flow("swarm", create_toolcall_agent(llm), llm=llm)

    def test_base_flow_is_abstract(self, llm: LLMClient) -> None:
        with pytest.raises(TypeError):
            BaseFlow(create_toolcall_agent(llm))  # type: ignore[abstract]


class TestExecutorSelection:
    def test_by_step_type(self, llm: LLMClient) -> None:
        main, _ = _executor("main")
        search, _ = _executor("search")
        flow = _flow(MockProvider(), {"main": main, "search": search}, executors=["main"])
        assert flow.get_executor("search") is search
        assert flow.get_executor("unknown") is main
        assert flow.get_executor(None) is main

    def test_falls_back_to_primary(self) -> None:
        main, _ = _executor("main")
        flow = _flow(MockProvider(), {"main": main}, executors=["missing"])
        assert flow.get_executor() is main

    def test_defaults(self) -> None:
        a, _ = _executor("a")
        b, _ = _executor("b")
        flow = _flow(MockProvider(), {"a": a, "b": b})
        assert flow.primary_agent is a
        assert flow.executor_keys == ["a", "b"]

    def test_no_executor(self) -> None:
        flow = _flow(MockProvider(), {})
        with pytest.raises(FlowError):
            flow.get_executor()


class TestPlanningFlowExecute:
    @pytest.mark.asyncio
    async def test_runs_every_step_then_summarizes(self) -> None:
        planner = _planner(["Find flights", "Book hotel"], summary="Trip is booked.")
        executor, exec_provider = _executor()
        flow = _flow(planner, {"executor": executor})

        result = await flow.execute("Plan a trip")

        step_log = "Step 1: Mock response\nTerminated: Reached max steps (1)\n"
        assert result == step_log + step_log + "Plan completed:\n\nTrip is booked."
        plan = flow.plan_store.get_plan(PLAN_ID)
        assert plan is not None
        assert plan.title == "Trip"
        assert [s.status for s in plan.steps] == [StepStatus.COMPLETED, StepStatus.COMPLETED]
        assert exec_provider.call_count == 2

    @pytest.mark.asyncio
    async def test_plan_request_uses_required_tool_choice(self) -> None:
        planner = _planner(["Only step"])
        executor, _ = _executor()
        flow = _flow(planner, {"executor": executor})
        await flow.execute("Plan a trip")

        messages, options = planner.call_history[0]
        assert messages[0].role == Role.SYSTEM
        assert messages[1].content == "Create a reasonable plan with clear steps to accomplish the task: Plan a trip"
        assert options is not None
        assert options.tool_choice == ToolChoice.REQUIRED
        assert [t.name for t in options.tools or []] == ["planning"]

    @pytest.mark.asyncio
    async def test_step_prompt(self) -> None:
        executor, exec_provider = _executor()
        flow = _flow(_planner(["Find flights"]), {"executor": executor})
        await flow.execute("Plan a trip")

        step_prompt = next(m.content for m in exec_provider.call_history[0][0] if m.role == Role.USER)
        assert step_prompt.startswith("CURRENT PLAN STATUS:\nPlan: Trip (ID: plan_test)")
        assert "0. [→] Find flights" in step_prompt
        assert 'YOUR CURRENT TASK:\nYou are now working on step 0: "Find flights"' in step_prompt

    @pytest.mark.asyncio
    async def test_routes_by_step_type(self) -> None:
        main, main_provider = _executor("main")
        search, search_provider = _executor("search")
        flow = _flow(_planner(["[SEARCH] Find flights", "Book hotel"]), {"main": main, "search": search}, executors=["main"])
        await flow.execute("Plan a trip")
        assert search_provider.call_count == 1
        assert main_provider.call_count == 1

    @pytest.mark.asyncio
    async def test_text_only_plan_falls_back_to_default_steps(self) -> None:
        planner = MockProvider()
        planner.add_response(content="Here is my plan in prose.")
        planner.add_response(content="Summary")
        executor, _ = _executor()
        flow = _flow(planner, {"executor": executor})

        await flow.execute("Write a poem")

        plan = flow.plan_store.get_plan(PLAN_ID)
        assert plan is not None
        assert [s.text for s in plan.steps] == DEFAULT_PLAN_STEPS
        assert plan.title == "Plan for: Write a poem"

    @pytest.mark.asyncio
    async def test_unparseable_plan_call_falls_back(self) -> None:
        planner = MockProvider()
        planner.add_tool_call("planning", "{not json")
        planner.add_response(content="Summary")
        executor, _ = _executor()
        flow = _flow(planner, {"executor": executor})
        await flow.execute("Write a poem")
        plan = flow.plan_store.get_plan(PLAN_ID)
        assert plan is not None
        assert len(plan.steps) == 3

    @pytest.mark.asyncio
    async def test_plan_id_forced(self) -> None:
        executor, _ = _executor()
        flow = _flow(_planner(["a"]), {"executor": executor})
        await flow.execute("go")
        assert flow.plan_store.plan_ids == [PLAN_ID]

    @pytest.mark.asyncio
    async def test_finished_executor_stops_flow(self) -> None:
        exec_provider = MockProvider()
        exec_provider.add_tool_call("terminate", {"status": "success"})
        executor, _ = _executor(provider=exec_provider, max_steps=3)
        planner = _planner(["a", "b"])
        flow = _flow(planner, {"executor": executor})

        result = await flow.execute("go")

        assert "Plan completed" not in result
        assert executor.state == AgentState.FINISHED
        plan = flow.plan_store.get_plan(PLAN_ID)
        assert plan is not None
        assert [s.status for s in plan.steps] == [StepStatus.COMPLETED, StepStatus.NOT_STARTED]
        assert planner.call_count == 1

    @pytest.mark.asyncio
    async def test_failing_step_is_blocked(self) -> None:
        executor, _ = _executor(tool_choice=ToolChoice.REQUIRED)
        flow = _flow(_planner(["a", "b"]), {"executor": executor})

        result = await flow.execute("go")

        assert "Error executing step 0: Tool calls required but none provided" in result
        assert "Error executing step 1: Tool calls required but none provided" in result
        assert result.endswith("Plan completed:\n\nAll done.")
        plan = flow.plan_store.get_plan(PLAN_ID)
        assert plan is not None
        assert all(s.status == StepStatus.BLOCKED for s in plan.steps)
        assert plan.steps[0].notes == "Tool calls required but none provided"

    @pytest.mark.asyncio
    async def test_summary_fallback(self) -> None:
        executor, _ = _executor()
        flow = _flow(_planner(["a"], summary=""), {"executor": executor})
        result = await flow.execute("go")
        assert result.endswith(SUMMARY_FALLBACK)

    @pytest.mark.asyncio
    async def test_no_primary_agent(self, llm: LLMClient) -> None:
        flow = PlanningFlow({}, llm=llm)
        assert await flow.execute("go") == "Execution failed: No primary agent available"

    @pytest.mark.asyncio
    async def test_empty_input_without_plan(self) -> None:
        executor, _ = _executor()
        flow = _flow(MockProvider(), {"executor": executor})
        result = await flow.execute("")
        assert result == f"Error getting current step info: No plan found with ID: {PLAN_ID}\n"

    @pytest.mark.asyncio
    async def test_shared_store(self, plan_store: PlanStore) -> None:
        executor, _ = _executor()
        flow = _flow(_planner(["a"]), {"executor": executor}, plan_store=plan_store)
        await flow.execute("go")
        assert plan_store.has_plan(PLAN_ID)
