"""Agent loop, policies and the model boundary."""

from agentflow.core.agent import Agent, AgentPolicy
from agentflow.core.factory import create_planning_agent, create_toolcall_agent
from agentflow.core.llm import LLMClient
from agentflow.core.memory import Memory
from agentflow.core.planning import PlanTracker, StepExecution
from agentflow.core.toolcall import ToolCallPolicy

__all__ = [
    "Agent",
    "AgentPolicy",
    "LLMClient",
    "Memory",
    "PlanTracker",
    "StepExecution",
    "ToolCallPolicy",
    "create_planning_agent",
    "create_toolcall_agent",
]
