"""Multi-agent flows."""

from agentflow.flow.base import BaseFlow, FlowType
from agentflow.flow.factory import create_flow
from agentflow.flow.loader import create_flow_from_config
from agentflow.flow.planning import PlanningFlow

__all__ = ["BaseFlow", "FlowType", "PlanningFlow", "create_flow", "create_flow_from_config"]
