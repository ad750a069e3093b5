"""
Tool Client - connects to upstream MCP servers and routes tool calls.

Each registered manual gets a long-lived background task that opens an MCP
client session, publishes the server's tools to the repository and then holds
the session open until the manual is deregistered. Connection attempts are
retried with exponential backoff.
"""

import asyncio
import json
import logging
import time
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Dict, List, Optional

import mcp.types as types
from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.client.streamable_http import streamablehttp_client
from pydantic import BaseModel, Field

from ..errors import ManualError, ToolCallError, ToolNotFoundError
from .manual import ManualConfig
from .repository import RemoteTool, ToolRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[ManualConfig], AsyncContextManager[ClientSession]]


@asynccontextmanager
async def open_session(manual: ManualConfig) -> AsyncIterator[ClientSession]:
    """Open and initialize an MCP client session for ``manual``."""
    async with AsyncExitStack() as stack:
        if manual.transport == "stdio":
            params = StdioServerParameters(
                command=manual.command,
                args=manual.args,
                env={**get_default_environment(), **manual.env},
                cwd=manual.cwd,
            )
            read, write = await stack.enter_async_context(stdio_client(params))
        elif manual.transport == "sse":
            read, write = await stack.enter_async_context(
                sse_client(manual.url, headers=manual.headers or None)
            )
        else:
            read, write, _ = await stack.enter_async_context(
                streamablehttp_client(manual.url, headers=manual.headers or None)
            )
        session = await stack.enter_async_context(ClientSession(read, write))
        await session.initialize()
        yield session


class ManualStatus(BaseModel):
    """Connection status of one manual."""
    name: str
    connected: bool = False
    tool_count: int = 0
    error: Optional[str] = None
    last_attempt: float = Field(default=0.0, description="Epoch seconds of the last connection attempt")
    attempts: int = 0


class _ManualConnection:
    def __init__(self, config: ManualConfig):
        self.config = config
        self.status = ManualStatus(name=config.name)
        self.session: Optional[ClientSession] = None
        self.first_attempt_done = asyncio.Event()
        self.stop = asyncio.Event()
        self.task: Optional[asyncio.Task] = None


def _content_to_payload(item: Any) -> Any:
    if isinstance(item, types.TextContent):
        try:
            return json.loads(item.text)
        except ValueError:
            return item.text
    return item.model_dump(mode="json", exclude_none=True)


class ToolClient:
    """Manages upstream manuals and the tools they expose."""

    def __init__(
        self,
        repository: Optional[ToolRepository] = None,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        max_backoff: float = 10.0,
        session_factory: SessionFactory = open_session,
        shutdown_timeout: float = 5.0,
    ):
        """
        Args:
            repository: Tool store (a fresh one by default)
            max_retries: Connection attempts per manual
            initial_backoff: First retry delay in seconds
            max_backoff: Upper bound for the retry delay in seconds
            session_factory: Opens an initialized ClientSession for a manual
            shutdown_timeout: Seconds to wait for a manual task before cancelling it
        """
        self.repository = repository or ToolRepository()
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._session_factory = session_factory
        self._shutdown_timeout = shutdown_timeout
        self._connections: Dict[str, _ManualConnection] = {}

    # --- Manual lifecycle ---

    async def register_manual(self, config: ManualConfig, wait: bool = True) -> ManualStatus:
        """
        Register an upstream manual and start connecting to it.

        Args:
            config: Manual call template
            wait: Wait for the first connection attempt (including retries) to finish

        Returns:
            Current status of the manual

        Raises:
            ManualError: If a manual with the same name is already registered
                and still connected or connecting
        """
        previous = self._connections.get(config.name)
        if previous is not None and not (previous.task and previous.task.done()):
            raise ManualError(f"Manual '{config.name}' is already registered")

        conn = _ManualConnection(config)
        self._connections[config.name] = conn
        if previous is not None:
            # Replacing a manual whose connection attempts are exhausted
            logger.info(f"Replacing disconnected manual '{config.name}'")
            await self.repository.remove_manual(config.name)
        conn.task = asyncio.get_running_loop().create_task(self._run_manual(conn))
        logger.info(f"Registered manual '{config.name}' ({config.transport})")

        if wait:
            await conn.first_attempt_done.wait()
        return conn.status.model_copy()

    async def deregister_manual(self, name: str) -> bool:
        """Disconnect a manual and drop its tools. Returns False if it is unknown."""
        conn = self._connections.pop(name, None)
        if conn is None:
            return False
        await self._stop_connection(conn)
        removed = await self.repository.remove_manual(name)
        logger.info(f"Deregistered manual '{name}' ({removed} tools removed)")
        return True

    async def close(self) -> None:
        """Disconnect every manual."""
        for name in list(self._connections):
            await self.deregister_manual(name)

    async def _stop_connection(self, conn: _ManualConnection) -> None:
        conn.stop.set()
        if conn.task is None:
            return
        done, _ = await asyncio.wait({conn.task}, timeout=self._shutdown_timeout)
        if not done:
            logger.warning(f"Manual '{conn.config.name}' did not stop in time, cancelling")
            conn.task.cancel()
            await asyncio.wait({conn.task})

    async def _run_manual(self, conn: _ManualConnection) -> None:
        name = conn.config.name
        backoff = self.initial_backoff
        try:
            for attempt in range(self.max_retries):
                if conn.stop.is_set():
                    return
                conn.status.attempts += 1
                conn.status.last_attempt = time.time()
                try:
                    logger.info(f"Connecting to manual '{name}' (attempt {attempt + 1}/{self.max_retries})")
                    async with self._session_factory(conn.config) as session:
                        tools = await self._list_remote_tools(name, session)
                        await self.repository.save_manual_tools(name, tools)
                        conn.session = session
                        conn.status.connected = True
                        conn.status.tool_count = len(tools)
                        conn.status.error = None
                        conn.first_attempt_done.set()
                        logger.info(f"Manual '{name}' connected with {len(tools)} tools")
                        await conn.stop.wait()
                    return
                except Exception as e:
                    conn.status.error = str(e)
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            f"Connection to manual '{name}' failed: {e}. "
                            f"Retrying in {backoff:.1f} seconds..."
                        )
                        try:
                            await asyncio.wait_for(conn.stop.wait(), timeout=backoff)
                            return
                        except asyncio.TimeoutError:
                            pass
                        backoff = min(backoff * 2, self.max_backoff)
                    else:
                        logger.error(f"All connection attempts to manual '{name}' failed. Last error: {e}")
                finally:
                    conn.session = None
                    conn.status.connected = False
        finally:
            conn.first_attempt_done.set()

    async def _list_remote_tools(self, manual: str, session: ClientSession) -> List[RemoteTool]:
        result = await session.list_tools()
        return [
            RemoteTool(
                name=f"{manual}.{tool.name}",
                manual=manual,
                original_name=tool.name,
                description=tool.description or "",
                input_schema=tool.inputSchema or {},
                tags=[manual],
            )
            for tool in result.tools
        ]

    # --- Tool access ---

    async def count_tools(self) -> int:
        """Number of tools discovered so far."""
        return await self.repository.count()

    async def get_tools(self) -> List[RemoteTool]:
        return await self.repository.get_tools()

    async def get_tool(self, name: str) -> RemoteTool:
        """
        Resolve a tool by registered or interface name.

        Raises:
            ToolNotFoundError: If no tool matches
        """
        tool = await self.repository.find(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    async def get_manual_tools(self, manual: str) -> List[RemoteTool]:
        return await self.repository.get_manual_tools(manual)

    async def get_required_variables(self, name: str) -> List[str]:
        """Environment variable names the tool's manual declares."""
        tool = await self.get_tool(name)
        conn = self._connections.get(tool.manual)
        if conn is None:
            return []
        return sorted(conn.config.env)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a tool on its upstream server.

        Returns:
            Structured content when the server provides it, otherwise the
            decoded content items (a single item is returned unwrapped)

        Raises:
            ToolNotFoundError: If no tool matches
            ToolCallError: If the manual is not connected or the call fails
        """
        tool = await self.get_tool(name)
        conn = self._connections.get(tool.manual)
        session = conn.session if conn else None
        if session is None:
            raise ToolCallError(f"Manual '{tool.manual}' is not connected")

        logger.debug(f"Calling {tool.original_name} on manual '{tool.manual}'")
        try:
            result = await session.call_tool(tool.original_name, arguments or {})
        except Exception as e:
            raise ToolCallError(f"Call to '{tool.name}' failed: {e}") from e

        payload = [_content_to_payload(item) for item in result.content]
        if result.isError:
            raise ToolCallError(" ".join(str(p) for p in payload) or f"Tool '{tool.name}' reported an error")

        structured = getattr(result, "structuredContent", None)
        if structured is not None:
            return structured
        return payload[0] if len(payload) == 1 else payload

    # --- Diagnostics ---

    def status(self) -> List[ManualStatus]:
        return [conn.status.model_copy() for conn in self._connections.values()]

    def get_manual(self, name: str) -> Optional[ManualConfig]:
        conn = self._connections.get(name)
        return conn.config if conn else None

    def list_manuals(self) -> List[str]:
        return list(self._connections)
