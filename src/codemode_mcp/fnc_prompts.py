"""
MCP prompt handlers for the bridge.
"""

import logging

import mcp.types as types
from .prompt import PROMPTS

logger = logging.getLogger(__name__)


async def handle_list_prompts() -> list[types.Prompt]:
    logger.debug("Handling list_prompts request")
    return [
        types.Prompt(
            name="codemode_usage",
            description="Guide on how to discover and call upstream tools through the bridge",
            arguments=[
                types.PromptArgument(
                    name="task",
                    description="Optional task to focus the guide on",
                    required=False,
                )
            ],
        )
    ]


async def handle_get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
    """Generate a prompt based on the requested type"""
    if arguments is None:
        arguments = {}

    if name == "codemode_usage":
        task = arguments.get("task")
        focus = f" (for example: `search_tools({{\"task_description\": \"{task}\"}})`)" if task else ""
        prompt_text = PROMPTS["codemode_usage"].format(focus=focus)
        return types.GetPromptResult(
            description="Code Mode bridge usage guide",
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(
                        type="text",
                        text=prompt_text
                    )
                )
            ]
        )

    raise ValueError(f"Unknown prompt: {name}")
