"""The ``terminate`` tool, used by agents to end their run."""

from __future__ import annotations

from typing import Any

from agentflow.errors import ToolError
from agentflow.tools.base import Tool, ToolSpec

TERMINATE_TOOL_NAME = "terminate"

TERMINATE_DESCRIPTION = (
    "Terminate the interaction when the request is met OR if the assistant "
    "cannot proceed further with the task."
)

TERMINATE_STATUSES = ("success", "failure")


def create_terminate_tool() -> Tool:
    async def terminate(args: dict[str, Any]) -> str:
        status = args.get("status")
        if status not in TERMINATE_STATUSES:
            raise ToolError(
                f"Invalid status: {status}. Expected one of: {', '.join(TERMINATE_STATUSES)}",
                tool_name=TERMINATE_TOOL_NAME,
            )
        return f"The interaction has been completed with status: {status}"

    return Tool(
        spec=ToolSpec(
            name=TERMINATE_TOOL_NAME,
            description=TERMINATE_DESCRIPTION,
            parameters={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "description": "The finish status of the interaction.",
                        "enum": list(TERMINATE_STATUSES),
                    },
                },
                "required": ["status"],
            },
        ),
        execute=terminate,
        tags=["control"],
    )
