"""
In-memory repository of discovered tools.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..identifiers import to_interface_name

logger = logging.getLogger(__name__)


class RemoteTool(BaseModel):
    """A tool discovered on an upstream server."""
    name: str = Field(..., description="Registered name: <manual>.<tool>")
    manual: str = Field(..., description="Manual the tool belongs to")
    original_name: str = Field(..., description="Name of the tool on the upstream server")
    description: str = Field(default="")
    input_schema: Dict[str, Any] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)

    @property
    def interface_name(self) -> str:
        return to_interface_name(self.name)


class ToolRepository:
    """
    Concurrency-safe store of tools keyed by registered name.

    Writers hold an asyncio lock; readers get snapshots.
    """

    def __init__(self):
        self._tools: Dict[str, RemoteTool] = {}
        self._lock = asyncio.Lock()

    async def save_manual_tools(self, manual: str, tools: List[RemoteTool]) -> None:
        """Replace every tool of ``manual`` with ``tools``."""
        async with self._lock:
            for name in [n for n, t in self._tools.items() if t.manual == manual]:
                del self._tools[name]
            for tool in tools:
                self._tools[tool.name] = tool
        logger.debug(f"Stored {len(tools)} tools for manual '{manual}'")

    async def remove_manual(self, manual: str) -> int:
        async with self._lock:
            names = [n for n, t in self._tools.items() if t.manual == manual]
            for name in names:
                del self._tools[name]
        return len(names)

    async def get_tool(self, name: str) -> Optional[RemoteTool]:
        return self._tools.get(name)

    async def get_tools(self) -> List[RemoteTool]:
        return list(self._tools.values())

    async def get_manual_tools(self, manual: str) -> List[RemoteTool]:
        return [t for t in self._tools.values() if t.manual == manual]

    async def count(self) -> int:
        return len(self._tools)

    async def find(self, name: str) -> Optional[RemoteTool]:
        """Look a tool up by registered name, falling back to its interface name."""
        tool = self._tools.get(name)
        if tool is not None:
            return tool
        for candidate in list(self._tools.values()):
            if candidate.interface_name == name:
                return candidate
        return None
