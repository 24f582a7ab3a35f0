"""The ``create_chat_completion`` tool: hands a final answer back to the user."""

from __future__ import annotations

from typing import Any

from agentflow.errors import ToolError
from agentflow.tools.base import Tool, ToolSpec

COMPLETION_TOOL_NAME = "create_chat_completion"


def create_completion_tool() -> Tool:
    async def create_chat_completion(args: dict[str, Any]) -> str:
        response = args.get("response")
        if response is None:
            raise ToolError("Parameter `response` is required", tool_name=COMPLETION_TOOL_NAME)
        return str(response)

    return Tool(
        spec=ToolSpec(
            name=COMPLETION_TOOL_NAME,
            description="Creates a structured completion with specified output formatting.",
            parameters={
                "type": "object",
                "properties": {
                    "response": {
                        "type": "string",
                        "description": "The response text that should be delivered to the user.",
                    },
                },
                "required": ["response"],
            },
        ),
        execute=create_chat_completion,
        tags=["output"],
    )
