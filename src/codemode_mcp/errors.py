"""
Exceptions raised by the tool client and surfaced by the bridge operations.
"""


class BridgeError(Exception):
    """Base class for bridge errors."""


class ManualError(BridgeError):
    """A manual could not be registered, connected or removed."""


class ToolNotFoundError(BridgeError):
    """No registered tool matches the requested name."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' not found")
        self.tool_name = tool_name


class ToolCallError(BridgeError):
    """The upstream server failed to execute a tool call."""
