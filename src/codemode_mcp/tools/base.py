"""
Base classes and types for bridge operations.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, TypeVar
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..context import BridgeContext


class ToolMetadata(BaseModel):
    """Metadata describing a bridge operation."""
    name: str = Field(..., description="Unique identifier for the operation")
    title: str = Field(default="", description="Short human-readable title")
    description: str = Field(..., description="Human-readable description of what the operation does")
    category: str = Field(..., description="Category/group this operation belongs to (e.g., 'catalog', 'manuals')")
    tags: List[str] = Field(default_factory=list, description="Searchable tags")
    requires_discovery: bool = Field(default=True, description="Whether the operation waits for tool discovery first")
    version: str = Field(default="1.0.0", description="Operation version")


class ToolInput(BaseModel):
    """Base class for operation input schemas."""
    pass


class ToolOutput(BaseModel):
    """Base class for operation output schemas."""
    success: bool = Field(default=True, description="Whether the operation was successful")
    error: Optional[str] = Field(default=None, description="Error message if the operation failed")


TInput = TypeVar('TInput', bound=ToolInput)
TOutput = TypeVar('TOutput', bound=ToolOutput)


class ToolBase(ABC):
    """
    Base class for all bridge operations.

    Each operation should:
    1. Define METADATA as a class attribute
    2. Define InputSchema and OutputSchema as nested classes
    3. Implement the execute() method

    Operations receive the shared BridgeContext at execution time. When
    METADATA.requires_discovery is set, the executor waits on the readiness
    gate before calling execute().
    """

    METADATA: ToolMetadata

    @abstractmethod
    async def execute(self, input_data: TInput, context: "BridgeContext") -> TOutput:
        """
        Execute the operation.

        Args:
            input_data: Validated input matching InputSchema
            context: Shared bridge context

        Returns:
            Output matching OutputSchema
        """
        pass

    @classmethod
    def get_input_schema(cls) -> Dict[str, Any]:
        """Get JSON Schema for operation input."""
        return cls.InputSchema.model_json_schema()

    @classmethod
    def to_mcp_tool(cls) -> Dict[str, Any]:
        """Convert to MCP tool format."""
        return {
            "name": cls.METADATA.name,
            "title": cls.METADATA.title or None,
            "description": cls.METADATA.description,
            "inputSchema": cls.get_input_schema()
        }
