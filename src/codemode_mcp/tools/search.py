"""
Search Tools - find discovered tools relevant to a task.

This is the entry point for agents: instead of listing every upstream tool,
they describe the task and get back the best matching tools with their input
schemas.
"""

from typing import Any, Dict, List
from pydantic import Field

from ..ranking import rank_tools
from .base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class SearchToolsInput(ToolInput):
    """Input schema for search_tools."""
    task_description: str = Field(
        ...,
        description="A natural language description of the task."
    )
    limit: int = Field(
        default=10,
        ge=1,
        description="Maximum number of tools to return"
    )


class SearchToolsOutput(ToolOutput):
    """Output schema for search_tools."""
    tools: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Matching tools, most relevant first"
    )
    count: int = Field(
        default=0,
        description="Number of tools returned"
    )


class SearchTools(ToolBase):
    """
    Ranks every discovered tool against the task description.

    Examples:
    - {"task_description": "send an email"}
    - {"task_description": "create github issue", "limit": 3}
    """

    METADATA = ToolMetadata(
        name="search_tools",
        title="Search for Tools",
        description=(
            "Searches for relevant tools based on a task description. "
            "Use this to find tools for a task before calling them."
        ),
        category="catalog",
        tags=["search", "discovery", "tools"],
    )

    class InputSchema(SearchToolsInput):
        pass

    class OutputSchema(SearchToolsOutput):
        pass

    async def execute(self, input_data: SearchToolsInput, context) -> SearchToolsOutput:
        all_tools = await context.client.get_tools()
        matches = rank_tools(all_tools, input_data.task_description, input_data.limit)

        tools = [
            {
                "name": tool.interface_name,
                "description": tool.description,
                "input_schema": tool.input_schema,
            }
            for tool in matches
        ]
        return SearchToolsOutput(success=True, tools=tools, count=len(tools))
