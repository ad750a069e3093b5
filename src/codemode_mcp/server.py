"""
Code Mode MCP Bridge using FastMCP
Supports all transport methods: stdio, SSE, and streamable-http

Upstream manuals from the config file are connected in the background and the
bridge waits for tool discovery to converge before it starts serving (unless
DISCOVERY_BLOCKING=false, in which case operations that need tools wait on
their own).
"""
import asyncio
import logging
import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .client import load_config_file, locate_config_file
from .config import BridgeSettings
from .context import BridgeContext
from .errors import ManualError
from .fnc_prompts import handle_get_prompt, handle_list_prompts
from .fnc_resources import ResourceHandlers
from .fnc_tools import ToolHandlers

logger = logging.getLogger(__name__)


async def initialize_bridge(settings: BridgeSettings) -> BridgeContext:
    """Load the config file, build the bridge context and start connecting manuals."""
    config_path = locate_config_file(settings.config_file, Path.cwd(), Path(__file__).parent)
    config_file = load_config_file(config_path)
    settings.with_discovery_overrides(config_file.discovery)

    context = BridgeContext.create(settings)
    logger.info(f"Loaded {len(config_file.manuals)} manual(s) from {config_path}")

    for manual in config_file.manuals:
        try:
            await context.client.register_manual(manual, wait=False)
        except ManualError as e:
            logger.warning(f"Skipping manual '{manual.name}': {e}")
    return context


def create_app(context: BridgeContext) -> FastMCP:
    """Create the FastMCP app with handlers bound to ``context``."""
    app = FastMCP("codemode-mcp")

    tools = ToolHandlers(context)
    resources = ResourceHandlers(context)

    # Set up the handlers using the internal MCP server for dynamic resources and tools
    app._mcp_server.list_tools()(tools.handle_list_tools)
    app._mcp_server.call_tool(validate_input=False)(tools.handle_tool_call)
    app._mcp_server.list_resources()(resources.handle_list_resources)
    app._mcp_server.read_resource()(resources.handle_read_resource)
    app._mcp_server.list_prompts()(handle_list_prompts)
    app._mcp_server.get_prompt()(handle_get_prompt)
    return app


async def main():
    """Main entry point for the bridge."""
    settings = BridgeSettings.from_environment()
    logging.basicConfig(level=settings.log_level)

    context = await initialize_bridge(settings)
    app = create_app(context)

    try:
        if settings.discovery_blocking:
            logger.info("Waiting for tool discovery before connecting MCP transport...")
            outcome = await context.ensure_ready()
            logger.info(f"Tool discovery {outcome.status.value}: {outcome.tool_count} tools")
        else:
            context.start_discovery()

        mcp_transport = settings.transport
        logger.info(f"MCP_TRANSPORT: {mcp_transport}")

        if mcp_transport == "sse":
            app.settings.host = os.getenv("MCP_HOST", app.settings.host)
            app.settings.port = int(os.getenv("MCP_PORT", app.settings.port))
            logger.info(f"Starting MCP server on {app.settings.host}:{app.settings.port}")
            await app.run_sse_async()
        elif mcp_transport == "streamable-http":
            app.settings.host = os.getenv("MCP_HOST", app.settings.host)
            app.settings.port = int(os.getenv("MCP_PORT", app.settings.port))
            app.settings.streamable_http_path = os.getenv("MCP_PATH", "/mcp/")
            logger.info(f"Starting MCP server on {app.settings.host}:{app.settings.port} with path {app.settings.streamable_http_path}")
            await app.run_streamable_http_async()
        else:
            logger.info("Starting MCP server on stdin/stdout")
            await app.run_stdio_async()
    finally:
        await context.client.close()


if __name__ == "__main__":
    asyncio.run(main())
