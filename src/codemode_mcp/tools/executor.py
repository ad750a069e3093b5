"""
Operation Executor - discovers bridge operations and executes them.
"""

import importlib
import inspect
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from pydantic import ValidationError

from .base import ToolBase, ToolMetadata

if TYPE_CHECKING:
    from ..context import BridgeContext

logger = logging.getLogger(__name__)

_SKIPPED_FILES = ("base.py", "executor.py")


class ToolExecutor:
    """
    Loads bridge operations from the tools package and runs them.

    Features:
    - Discovers operations by scanning the package directory
    - Caches loaded operation classes
    - Validates input against each operation's InputSchema
    - Waits on the readiness gate for operations that need discovered tools
    """

    def __init__(self, tools_dir: Optional[Path] = None, package: Optional[str] = None):
        """
        Initialize the executor.

        Args:
            tools_dir: Directory containing operation modules (defaults to this package)
            package: Dotted package name matching tools_dir
        """
        if tools_dir is None:
            tools_dir = Path(__file__).parent
            package = __package__
        self.tools_dir = tools_dir
        self.package = package
        self._tool_cache: Dict[str, Type[ToolBase]] = {}
        self._discovered = False

    def _module_paths(self) -> List[str]:
        paths = []
        for py_file in sorted(self.tools_dir.rglob("*.py")):
            if py_file.name.startswith("_") or py_file.name in _SKIPPED_FILES:
                continue
            rel_path = py_file.relative_to(self.tools_dir).with_suffix("")
            paths.append(f"{self.package}.{'.'.join(rel_path.parts)}")
        return paths

    def _discover(self) -> None:
        if self._discovered:
            return
        for module_path in self._module_paths():
            try:
                module = importlib.import_module(module_path)
            except Exception as e:
                logger.error(f"Error loading operations from {module_path}: {e}")
                continue

            for _, obj in inspect.getmembers(module, inspect.isclass):
                if (issubclass(obj, ToolBase) and
                        obj is not ToolBase and
                        not inspect.isabstract(obj) and
                        obj.__module__ == module.__name__ and
                        hasattr(obj, 'METADATA')):
                    self._tool_cache[obj.METADATA.name] = obj
                    logger.debug(f"Discovered operation: {obj.METADATA.name} from {module_path}")
        self._discovered = True

    def discover_all_tools(self) -> List[ToolMetadata]:
        """Metadata of every available operation, sorted by name."""
        self._discover()
        return [self._tool_cache[name].METADATA for name in sorted(self._tool_cache)]

    def load_tool(self, tool_name: str) -> Optional[Type[ToolBase]]:
        """
        Get an operation class by name.

        Returns:
            Operation class or None if not found
        """
        self._discover()
        tool_class = self._tool_cache.get(tool_name)
        if tool_class is None:
            logger.warning(f"Operation not found: {tool_name}")
        return tool_class

    async def execute_tool(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        context: "BridgeContext"
    ) -> Dict[str, Any]:
        """
        Validate arguments and execute an operation.

        Returns:
            Operation output as dictionary; failures are reported with
            ``success: False`` rather than raised
        """
        tool_class = self.load_tool(tool_name)
        if not tool_class:
            return {
                "success": False,
                "error": f"Operation not found: {tool_name}"
            }

        try:
            input_data = tool_class.InputSchema(**arguments)
        except ValidationError as e:
            return {
                "success": False,
                "error": f"Invalid arguments for {tool_name}: {e}"
            }

        try:
            if tool_class.METADATA.requires_discovery:
                await context.ensure_ready()
            output = await tool_class().execute(input_data, context)
            return output.model_dump(mode="json")
        except Exception as e:
            logger.error(f"Error executing operation {tool_name}: {e}", exc_info=True)
            return {
                "success": False,
                "error": f"Operation execution error: {str(e)}"
            }

    def clear_cache(self):
        """Forget loaded operations so the next lookup rescans the package."""
        self._tool_cache.clear()
        self._discovered = False
        logger.info("Operation cache cleared")
