"""
Register Manual - connect a new upstream tool provider at runtime.
"""

from pydantic import Field
import logging

from ...client import ManualConfig
from ...errors import ManualError
from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata

logger = logging.getLogger(__name__)


class RegisterManualInput(ToolInput):
    """Input schema for register_manual."""
    manual_call_template: ManualConfig = Field(
        ...,
        description="The call template for the upstream MCP server."
    )


class RegisterManualOutput(ToolOutput):
    """Output schema for register_manual."""
    manual_name: str = Field(default="", description="Name of the registered manual")
    connected: bool = Field(default=False, description="Whether the manual is connected")
    tool_count: int = Field(default=0, description="Number of tools the manual provides")


class RegisterManual(ToolBase):
    """
    Registers an upstream MCP server and waits for its first connection
    attempt. Its tools become searchable as soon as it connects.
    """

    METADATA = ToolMetadata(
        name="register_manual",
        title="Register a Manual",
        description="Registers a new tool provider by providing its call template.",
        category="manuals",
        tags=["manual", "register", "provider"],
        requires_discovery=False,
    )

    class InputSchema(RegisterManualInput):
        pass

    class OutputSchema(RegisterManualOutput):
        pass

    async def execute(self, input_data: RegisterManualInput, context) -> RegisterManualOutput:
        manual = input_data.manual_call_template
        try:
            status = await context.client.register_manual(manual)
        except ManualError as e:
            logger.warning(f"Manual registration rejected: {e}")
            return RegisterManualOutput(success=False, error=str(e), manual_name=manual.name)

        return RegisterManualOutput(
            success=status.connected,
            error=status.error,
            manual_name=status.name,
            connected=status.connected,
            tool_count=status.tool_count,
        )
