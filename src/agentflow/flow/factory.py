"""Flow construction by type."""

from __future__ import annotations

from typing import Any

from agentflow.errors import FlowError
from agentflow.flow.base import AgentsInput, BaseFlow, FlowType
from agentflow.flow.planning import PlanningFlow

FLOW_CLASSES: dict[FlowType, type[BaseFlow]] = {
    FlowType.PLANNING: PlanningFlow,
}


def create_flow(flow_type: FlowType | str, agents: AgentsInput, **options: Any) -> BaseFlow:
    """Create a flow of ``flow_type`` over ``agents``; ``options`` go to the flow constructor."""
    try:
        flow_class = FLOW_CLASSES[FlowType(flow_type)]
    except ValueError:
        raise FlowError(f"Unknown flow type: {flow_type}") from None
    return flow_class(agents, **options)
