"""
MCP resource handlers for the bridge.

Resources:
- codemode://discovery/status: readiness gate state, last outcome and manual status
- codemode://manual/<name>: tools provided by one manual
"""

import logging
from typing import Any

import yaml
from pydantic import AnyUrl

import mcp.types as types

from .context import BridgeContext

logger = logging.getLogger(__name__)

STATUS_URI = "codemode://discovery/status"
MANUAL_URI_PREFIX = "codemode://manual/"


def data_to_yaml(data: Any) -> str:
    """Convert data to YAML format."""
    return yaml.dump(data, indent=2, sort_keys=False)


class ResourceHandlers:
    """list_resources / read_resource handlers bound to one bridge context."""

    def __init__(self, context: BridgeContext):
        self.context = context

    async def handle_list_resources(self) -> list[types.Resource]:
        resources = [
            types.Resource(
                uri=AnyUrl(STATUS_URI),
                name="Discovery status",
                description="Tool discovery progress and upstream connection status",
                mimeType="application/yaml",
            )
        ]
        for name in self.context.client.list_manuals():
            resources.append(types.Resource(
                uri=AnyUrl(f"{MANUAL_URI_PREFIX}{name}"),
                name=f"{name} manual",
                description=f"Tools provided by the {name} manual",
                mimeType="application/yaml",
            ))
        return resources

    async def handle_read_resource(self, uri: AnyUrl) -> str:
        uri_str = str(uri)
        if uri_str == STATUS_URI:
            return data_to_yaml(await self._status())

        if uri_str.startswith(MANUAL_URI_PREFIX):
            name = uri_str[len(MANUAL_URI_PREFIX):]
            if self.context.client.get_manual(name) is None:
                raise ValueError(f"Unknown manual: {name}")
            tools = await self.context.client.get_manual_tools(name)
            return data_to_yaml([
                {"name": t.interface_name, "description": t.description}
                for t in tools
            ])

        raise ValueError(f"Unknown resource: {uri}")

    async def _status(self) -> dict:
        gate = self.context.gate
        outcome = gate.outcome
        return {
            "gate_state": gate.state.value,
            "outcome": outcome.model_dump(mode="json") if outcome else None,
            "tool_count": await self.context.client.count_tools(),
            "manuals": [s.model_dump() for s in self.context.client.status()],
        }
