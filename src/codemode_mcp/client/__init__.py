"""
Upstream tool client: manual configs, the tool repository and MCP sessions.
"""

from .manual import BridgeConfigFile, ManualConfig, load_config_file, locate_config_file
from .repository import RemoteTool, ToolRepository
from .tool_client import ManualStatus, ToolClient, open_session

__all__ = [
    "BridgeConfigFile",
    "ManualConfig",
    "load_config_file",
    "locate_config_file",
    "RemoteTool",
    "ToolRepository",
    "ManualStatus",
    "ToolClient",
    "open_session",
]
