"""Build agents and a flow from a flow description."""

from __future__ import annotations

import logging
from collections.abc import Callable

from agentflow.config import AgentSpec, AppConfig, FlowConfig, LLMSettings
from agentflow.core.agent import Agent
from agentflow.core.factory import create_planning_agent, create_toolcall_agent
from agentflow.core.llm import LLMClient
from agentflow.errors import ConfigurationError
from agentflow.flow.base import BaseFlow
from agentflow.flow.factory import create_flow
from agentflow.providers.openai import OpenAIProvider
from agentflow.tools.planning import PlanStore
from agentflow.tools.standard import create_standard_registry

logger = logging.getLogger(__name__)

DEFAULT_AGENT_MAX_STEPS = 10
DEFAULT_TOOLS: dict[str, list[str]] = {
    "planning": ["planning", "terminate"],
    "toolcall": ["chat", "terminate"],
}

LLMFactory = Callable[[LLMSettings], LLMClient]


def build_llm(settings: LLMSettings) -> LLMClient:
    """LLM client over the OpenAI-compatible provider described by ``settings``."""
    provider = OpenAIProvider(
        settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
        api_type=settings.api_type,
        api_version=settings.api_version,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
    )
    return LLMClient(
        provider,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.timeout,
    )


def build_agent(
    key: str,
    spec: AgentSpec,
    *,
    llm: LLMClient,
    plan_store: PlanStore,
) -> Agent:
    tool_names = spec.tools if spec.tools is not None else DEFAULT_TOOLS[spec.type]
    registry = create_standard_registry(tool_names, plan_store=plan_store)
    max_steps = spec.max_steps or DEFAULT_AGENT_MAX_STEPS

    if spec.type == "planning":
        return create_planning_agent(
            llm,
            name=key,
            description=spec.description,
            plan_store=plan_store,
            registry=registry,
            system_prompt=spec.system_prompt,
            next_step_prompt=spec.next_step_prompt,
            max_steps=max_steps,
        )
    if spec.type == "toolcall":
        return create_toolcall_agent(
            llm,
            name=key,
            description=spec.description,
            registry=registry,
            system_prompt=spec.system_prompt,
            next_step_prompt=spec.next_step_prompt,
            max_steps=max_steps,
        )
    raise ConfigurationError(f"Unknown agent type: {spec.type}")


def create_flow_from_config(
    flow_config: FlowConfig,
    app_config: AppConfig | None = None,
    *,
    llm_factory: LLMFactory = build_llm,
    plan_store: PlanStore | None = None,
) -> BaseFlow:
    """Instantiate every configured agent and wrap them in the configured flow.

    All agents and the flow share one plan store. Each agent uses the LLM
    settings named by its ``llm`` key (or its own key), falling back to
    ``default``; the flow itself uses ``default``.
    """
    app_config = app_config or AppConfig()
    store = plan_store if plan_store is not None else PlanStore()
    clients: dict[str, LLMClient] = {}

    def client_for(name: str) -> LLMClient:
        resolved = name if name in app_config.llm else "default"
        if resolved not in clients:
            clients[resolved] = llm_factory(app_config.get_llm_settings(resolved))
        return clients[resolved]

    agents: dict[str, Agent] = {}
    for key, spec in flow_config.agents.items():
        agents[key] = build_agent(key, spec, llm=client_for(spec.llm or key), plan_store=store)
        logger.debug("Built %s agent %s", spec.type, key)

    return create_flow(
        flow_config.type,
        agents,
        llm=client_for("default"),
        plan_store=store,
        primary_agent_key=flow_config.primary_agent,
        executors=flow_config.executors,
        plan_id=flow_config.plan_id,
    )
