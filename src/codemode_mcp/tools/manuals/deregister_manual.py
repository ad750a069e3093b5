"""
Deregister Manual - disconnect an upstream tool provider.
"""

from pydantic import Field

from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class DeregisterManualInput(ToolInput):
    """Input schema for deregister_manual."""
    manual_name: str = Field(..., description="The name of the manual to deregister.")


class DeregisterManualOutput(ToolOutput):
    """Output schema for deregister_manual."""
    message: str = Field(default="", description="Outcome description")


class DeregisterManual(ToolBase):
    METADATA = ToolMetadata(
        name="deregister_manual",
        title="Deregister a Manual",
        description="Deregisters a tool provider and removes its tools.",
        category="manuals",
        tags=["manual", "deregister", "provider"],
        requires_discovery=False,
    )

    class InputSchema(DeregisterManualInput):
        pass

    class OutputSchema(DeregisterManualOutput):
        pass

    async def execute(self, input_data: DeregisterManualInput, context) -> DeregisterManualOutput:
        name = input_data.manual_name
        removed = await context.client.deregister_manual(name)
        if removed:
            return DeregisterManualOutput(success=True, message=f"Manual '{name}' deregistered.")
        message = f"Manual '{name}' not found."
        return DeregisterManualOutput(success=False, error=message, message=message)
