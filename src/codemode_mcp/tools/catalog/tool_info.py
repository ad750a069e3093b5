"""
Tool Info - full description of one discovered tool.
"""

from typing import Any, Dict
from pydantic import Field

from ...errors import ToolNotFoundError
from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class ToolInfoInput(ToolInput):
    tool_name: str = Field(..., description="Name of the tool to get complete information for.")


class ToolInfoOutput(ToolOutput):
    name: str = Field(default="", description="Interface name of the tool")
    registered_name: str = Field(default="", description="Registered name: <manual>.<tool>")
    manual: str = Field(default="", description="Manual providing the tool")
    description: str = Field(default="")
    input_schema: Dict[str, Any] = Field(default_factory=dict, description="JSON Schema of the tool arguments")


class ToolInfo(ToolBase):
    """
    Returns everything needed to call a tool. Accepts either the registered
    name or the interface name returned by search_tools/list_tools.
    """

    METADATA = ToolMetadata(
        name="tool_info",
        title="Get Tool Information",
        description="Get complete information about a specific tool including its input schema.",
        category="catalog",
        tags=["info", "schema", "tools"],
    )

    class InputSchema(ToolInfoInput):
        pass

    class OutputSchema(ToolInfoOutput):
        pass

    async def execute(self, input_data: ToolInfoInput, context) -> ToolInfoOutput:
        try:
            tool = await context.client.get_tool(input_data.tool_name)
        except ToolNotFoundError as e:
            return ToolInfoOutput(success=False, error=str(e))

        return ToolInfoOutput(
            success=True,
            name=tool.interface_name,
            registered_name=tool.name,
            manual=tool.manual,
            description=tool.description,
            input_schema=tool.input_schema,
        )
