"""
Required Keys - environment variables a tool's manual depends on.
"""

from typing import List
from pydantic import Field

from ...errors import ToolNotFoundError
from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class RequiredKeysInput(ToolInput):
    tool_name: str = Field(..., description="Name of the tool to get required variables for.")


class RequiredKeysOutput(ToolOutput):
    tool_name: str = Field(default="")
    required_variables: List[str] = Field(default_factory=list)


class RequiredKeys(ToolBase):
    METADATA = ToolMetadata(
        name="get_required_keys_for_tool",
        title="Get Required Variables for Tool",
        description="Get required environment variables for a registered tool.",
        category="catalog",
        tags=["variables", "environment", "keys"],
    )

    class InputSchema(RequiredKeysInput):
        pass

    class OutputSchema(RequiredKeysOutput):
        pass

    async def execute(self, input_data: RequiredKeysInput, context) -> RequiredKeysOutput:
        try:
            variables = await context.client.get_required_variables(input_data.tool_name)
        except ToolNotFoundError as e:
            return RequiredKeysOutput(success=False, error=str(e), tool_name=input_data.tool_name)
        return RequiredKeysOutput(success=True, tool_name=input_data.tool_name, required_variables=variables)
