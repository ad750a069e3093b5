"""
List Tools - names of every discovered tool.
"""

from typing import List
from pydantic import Field

from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class ListToolsInput(ToolInput):
    pass


class ListToolsOutput(ToolOutput):
    tools: List[str] = Field(default_factory=list, description="Interface names of all registered tools")


class ListTools(ToolBase):
    METADATA = ToolMetadata(
        name="list_tools",
        title="List All Registered Tools",
        description="Returns a list of all tool names currently registered.",
        category="catalog",
        tags=["list", "tools"],
    )

    class InputSchema(ListToolsInput):
        pass

    class OutputSchema(ListToolsOutput):
        pass

    async def execute(self, input_data: ListToolsInput, context) -> ListToolsOutput:
        tools = await context.client.get_tools()
        return ListToolsOutput(success=True, tools=[t.interface_name for t in tools])
