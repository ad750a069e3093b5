"""
Discovery Status - readiness of the bridge and its upstream connections.
"""

from typing import Any, Dict, List, Optional
from pydantic import Field

from ..base import ToolBase, ToolInput, ToolOutput, ToolMetadata


class DiscoveryStatusInput(ToolInput):
    pass


class DiscoveryStatusOutput(ToolOutput):
    gate_state: str = Field(default="", description="not_started, in_flight or completed")
    outcome: Optional[Dict[str, Any]] = Field(default=None, description="Result of the discovery run, once finished")
    tool_count: int = Field(default=0, description="Tools discovered so far")
    manuals: List[Dict[str, Any]] = Field(default_factory=list, description="Connection status per manual")


class DiscoveryStatusTool(ToolBase):
    """Reports progress without waiting for discovery to finish."""

    METADATA = ToolMetadata(
        name="discovery_status",
        title="Tool Discovery Status",
        description="Shows whether tool discovery has finished and which manuals are connected.",
        category="system",
        tags=["status", "health", "discovery"],
        requires_discovery=False,
    )

    class InputSchema(DiscoveryStatusInput):
        pass

    class OutputSchema(DiscoveryStatusOutput):
        pass

    async def execute(self, input_data: DiscoveryStatusInput, context) -> DiscoveryStatusOutput:
        outcome = context.gate.outcome
        return DiscoveryStatusOutput(
            success=True,
            gate_state=context.gate.state.value,
            outcome=outcome.model_dump(mode="json") if outcome else None,
            tool_count=await context.client.count_tools(),
            manuals=[s.model_dump() for s in context.client.status()],
        )
