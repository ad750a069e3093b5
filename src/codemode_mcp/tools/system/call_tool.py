"""
Call Tool - universal proxy for executing discovered tools.

Agents find tools with search_tools, inspect them with tool_info and run them
through this single entry point; the bridge routes the call to the upstream
server that owns the tool.
"""

import asyncio
import json
import logging
from typing import Any, Dict
from pydantic import Field

from ...errors import BridgeError
from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "...\nmax_output_size exceeded"


class CallToolInput(ToolInput):
    """Input schema for call_tool."""
    tool_name: str = Field(
        ...,
        description="Name of the tool to execute (discover tools first with search_tools)"
    )
    arguments: Dict[str, Any] = Field(
        default_factory=dict,
        description="Arguments to pass to the tool (use input_schema from tool_info)"
    )
    timeout: int = Field(
        default=30000,
        gt=0,
        description="Optional timeout in milliseconds (default: 30000)."
    )
    max_output_size: int = Field(
        default=200000,
        gt=0,
        description="Optional maximum output size in characters (default: 200000)."
    )


class CallToolOutput(ToolOutput):
    """Output schema for call_tool."""
    tool_name: str = Field(default="", description="Name of the tool that was called")
    result: Any = Field(default=None, description="Result from the executed tool")
    truncated: bool = Field(default=False, description="Whether the result was cut at max_output_size")


class CallTool(ToolBase):
    """
    Routes a call to the upstream server owning ``tool_name``.

    Example Workflow:
    ```python
    search_tools({"task_description": "create an issue"})
    # {"tools": [{"name": "github.create_issue", "input_schema": {...}}]}

    call_tool({
        "tool_name": "github.create_issue",
        "arguments": {"title": "Bug"}
    })
    ```

    Results whose JSON encoding exceeds max_output_size are returned as a
    truncated string.
    """

    METADATA = ToolMetadata(
        name="call_tool",
        title="Execute a Discovered Tool",
        description=(
            "Execute a tool discovered via search_tools. "
            "Use search_tools first to discover available tools, "
            "then use call_tool with the tool name and arguments."
        ),
        category="system",
        tags=["execution", "proxy", "tools"],
    )

    class InputSchema(CallToolInput):
        pass

    class OutputSchema(CallToolOutput):
        pass

    async def execute(self, input_data: CallToolInput, context) -> CallToolOutput:
        tool_name = input_data.tool_name
        logger.info(f"call_tool routing to: {tool_name}")

        try:
            result = await asyncio.wait_for(
                context.client.call_tool(tool_name, input_data.arguments),
                timeout=input_data.timeout / 1000,
            )
        except asyncio.TimeoutError:
            return CallToolOutput(
                success=False,
                error=f"Tool '{tool_name}' timed out after {input_data.timeout}ms",
                tool_name=tool_name,
            )
        except BridgeError as e:
            logger.warning(f"call_tool failed for '{tool_name}': {e}")
            return CallToolOutput(success=False, error=str(e), tool_name=tool_name)

        encoded = json.dumps(result, default=str)
        if len(encoded) > input_data.max_output_size:
            return CallToolOutput(
                success=True,
                tool_name=tool_name,
                result=encoded[:input_data.max_output_size] + TRUNCATION_MARKER,
                truncated=True,
            )
        return CallToolOutput(success=True, tool_name=tool_name, result=result)
