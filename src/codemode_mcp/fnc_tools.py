"""
MCP tool handlers for the bridge operations.

Lists the operations found by the ToolExecutor and dispatches tool calls to
them. Results are returned as a single JSON text block; failures are reported
as ``{"success": false, "error": ...}`` instead of protocol errors.
"""

import json
import logging
from typing import Any, List, Optional

import mcp.types as types

from .context import BridgeContext
from .tools import ToolExecutor

logger = logging.getLogger(__name__)

ResponseType = List[types.TextContent | types.ImageContent | types.EmbeddedResource]


def format_json_response(data: Any) -> ResponseType:
    """Format a JSON response."""
    return [types.TextContent(type="text", text=json.dumps(data, default=str))]


def format_error_response(error: str) -> ResponseType:
    """Format an error response."""
    return format_json_response({"success": False, "error": error})


class ToolHandlers:
    """list_tools / call_tool handlers bound to one bridge context."""

    def __init__(self, context: BridgeContext, executor: Optional[ToolExecutor] = None):
        self.context = context
        self.executor = executor or ToolExecutor()

    async def handle_list_tools(self) -> list[types.Tool]:
        """List the bridge operations with their input schemas."""
        logger.debug("Listing tools")
        tools = []
        for meta in self.executor.discover_all_tools():
            tool_class = self.executor.load_tool(meta.name)
            if tool_class:
                tools.append(types.Tool(**tool_class.to_mcp_tool()))
        return tools

    async def handle_tool_call(self, name: str, arguments: dict | None) -> ResponseType:
        """Execute a bridge operation."""
        logger.info(f"Calling tool: {name}")
        try:
            result = await self.executor.execute_tool(
                tool_name=name,
                arguments=arguments or {},
                context=self.context
            )
        except Exception as e:
            logger.error(f"Error executing tool {name}: {e}", exc_info=True)
            return format_error_response(f"Error executing tool {name}: {str(e)}")

        if result.get("success"):
            return format_json_response({k: v for k, v in result.items() if k not in ["success", "error"]})
        return format_error_response(result.get("error") or "Unknown error")
