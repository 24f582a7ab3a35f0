"""Flow base class: a named set of agents with one primary agent."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import StrEnum

from agentflow.core.agent import Agent

AgentsInput = Agent | list[Agent] | Mapping[str, Agent]


class FlowType(StrEnum):
    PLANNING = "planning"


def normalize_agents(agents: AgentsInput) -> dict[str, Agent]:
    """Key agents: a lone agent is ``default``, a list becomes ``agent_<i>``."""
    if isinstance(agents, Agent):
        return {"default": agents}
    if isinstance(agents, list):
        return {f"agent_{i}": agent for i, agent in enumerate(agents)}
    return dict(agents)


class BaseFlow(ABC):
    """Holds the agents a flow can delegate to."""

    def __init__(self, agents: AgentsInput, *, primary_agent_key: str | None = None) -> None:
        self.agents = normalize_agents(agents)
        self.primary_agent_key = primary_agent_key or next(iter(self.agents), None)

    @property
    def primary_agent(self) -> Agent | None:
        if self.primary_agent_key is None:
            return None
        return self.get_agent(self.primary_agent_key)

    def get_agent(self, key: str) -> Agent | None:
        return self.agents.get(key)

    def add_agent(self, key: str, agent: Agent) -> None:
        self.agents[key] = agent
        if self.primary_agent_key is None:
            self.primary_agent_key = key

    @abstractmethod
    async def execute(self, input_text: str) -> str:
        """Run the flow on ``input_text`` and return its combined output."""
