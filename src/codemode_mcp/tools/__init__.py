"""
Bridge operations exposed over MCP.

Each operation is a ToolBase subclass in its own module, with Pydantic input
and output schemas. The ToolExecutor finds them by scanning this package, so
adding an operation only takes a new module.
"""

from .base import ToolBase, ToolMetadata, ToolInput, ToolOutput
from .executor import ToolExecutor

__all__ = [
    "ToolBase",
    "ToolMetadata",
    "ToolInput",
    "ToolOutput",
    "ToolExecutor",
]
