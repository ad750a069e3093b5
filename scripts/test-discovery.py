#!/usr/bin/env python3
"""
Smoke test for tool discovery against simulated upstream servers.

This script verifies that:
1. Manuals that connect at different times are all picked up
2. The readiness gate waits until the tool count has converged
3. The converged count is written to the tool cache
4. A second run with the cache resolves on the expected count
5. Operations called through the MCP handlers see every tool
"""

import sys
import asyncio
import json
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import mcp.types as types

from codemode_mcp.client import ManualConfig, ToolClient
from codemode_mcp.config import BridgeSettings, DiscoveryConfig
from codemode_mcp.context import BridgeContext
from codemode_mcp.discovery import ResolutionReason
from codemode_mcp.fnc_tools import ToolHandlers

# Manual name -> (connect delay in seconds, number of tools)
UPSTREAMS = {
    "github": (0.05, 12),
    "slack": (0.15, 6),
    "files": (0.25, 9),
}
TOTAL_TOOLS = sum(count for _, count in UPSTREAMS.values())


def create_mock_session(manual: str, tool_count: int):
    """Create a mock ClientSession serving ``tool_count`` tools."""
    session = MagicMock()
    session.list_tools = AsyncMock(return_value=types.ListToolsResult(tools=[
        types.Tool(
            name=f"tool-{i}",
            description=f"{manual} tool number {i}",
            inputSchema={"type": "object", "properties": {}},
        )
        for i in range(tool_count)
    ]))
    session.call_tool = AsyncMock(return_value=types.CallToolResult(
        content=[types.TextContent(type="text", text=json.dumps({"manual": manual}))],
        isError=False,
    ))
    return session


@asynccontextmanager
async def slow_session_factory(manual: ManualConfig):
    """Open a mock session after the manual's simulated startup delay."""
    delay, tool_count = UPSTREAMS[manual.name]
    await asyncio.sleep(delay)
    yield create_mock_session(manual.name, tool_count)


async def build_context(state_dir: Path) -> BridgeContext:
    settings = BridgeSettings(
        state_dir=state_dir,
        discovery=DiscoveryConfig(poll_interval_ms=50, stable_threshold=3, timeout_ms=3000),
    )
    client = ToolClient(session_factory=slow_session_factory, shutdown_timeout=1.0)
    context = BridgeContext.create(settings, client=client)
    for name in UPSTREAMS:
        await client.register_manual(ManualConfig(name=name, command=f"{name}-server"), wait=False)
    return context


async def test_discovery_converges(state_dir: Path):
    """Test 1: Staggered manuals converge to the full tool count."""
    print("\n=== Test 1: Discovery Converges ===")

    context = await build_context(state_dir)
    try:
        outcome = await context.ensure_ready()

        print(f"✓ Discovery finished: {outcome.status.value} ({outcome.reason.value})")
        print(f"  Tools: {outcome.tool_count}, polls: {outcome.polls}, elapsed: {outcome.elapsed_ms}ms")

        assert outcome.complete, f"Expected complete discovery, got {outcome.status.value}"
        assert outcome.tool_count == TOTAL_TOOLS, f"Expected {TOTAL_TOOLS} tools, got {outcome.tool_count}"

        cached = context.cache.load()
        assert cached is not None and cached.tool_count == TOTAL_TOOLS, "Tool count was not cached"
        print(f"✓ Cached tool count: {cached.tool_count}")
    finally:
        await context.client.close()


async def test_cached_count_used(state_dir: Path):
    """Test 2: A second run resolves on the cached expected count."""
    print("\n=== Test 2: Cached Expected Count ===")

    context = await build_context(state_dir)
    try:
        outcome = await context.ensure_ready()

        print(f"✓ Discovery finished: {outcome.reason.value}, expected {outcome.expected_tools}")
        assert outcome.reason is ResolutionReason.EXPECTED_COUNT, f"Unexpected reason {outcome.reason.value}"
    finally:
        await context.client.close()


async def test_handlers_see_all_tools(state_dir: Path):
    """Test 3: Operations run through the MCP handlers after discovery."""
    print("\n=== Test 3: Handlers After Discovery ===")

    context = await build_context(state_dir)
    handlers = ToolHandlers(context)
    try:
        listed = json.loads((await handlers.handle_tool_call("list_tools", {}))[0].text)
        print(f"✓ list_tools returned {len(listed['tools'])} tools")
        assert len(listed["tools"]) == TOTAL_TOOLS

        called = json.loads((await handlers.handle_tool_call(
            "call_tool", {"tool_name": "slack.tool_2"}
        ))[0].text)
        print(f"✓ call_tool result: {called['result']}")
        assert called["result"] == {"manual": "slack"}
    finally:
        await context.client.close()


async def main():
    """Run all tests."""
    print("=" * 70)
    print("Tool Discovery Smoke Test")
    print("=" * 70)

    try:
        with tempfile.TemporaryDirectory() as tmp:
            state_dir = Path(tmp)
            await test_discovery_converges(state_dir)
            await test_cached_count_used(state_dir)
            await test_handlers_see_all_tools(state_dir)

        print("\n" + "=" * 70)
        print("✅ ALL TESTS PASSED")
        print("=" * 70)
        return 0

    except Exception as e:
        print("\n" + "=" * 70)
        print(f"❌ TEST FAILED: {e}")
        print("=" * 70)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
