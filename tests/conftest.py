"""Pytest configuration and shared fixtures for codemode-mcp tests.

Provides a fake clock driving the discovery loop, scripted count sources and
a fake upstream MCP session so no subprocess or network is involved.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import mcp.types as types
import pytest

from codemode_mcp.client import ManualConfig, ToolClient
from codemode_mcp.config import BridgeSettings, DiscoveryConfig
from codemode_mcp.context import BridgeContext
from codemode_mcp.discovery import ToolCountCache


class FakeClock:
    """Monotonic clock whose sleep advances time instantly (integer ms)."""

    def __init__(self, start_ms: int = 0):
        self.now_ms = start_ms
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now_ms / 1000

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_ms += int(round(seconds * 1000))


class WallClock:
    """Settable wall clock in milliseconds for the count cache."""

    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now = now_ms

    def __call__(self) -> int:
        return self.now


class ScriptedCountSource:
    """Returns scripted counts in order, repeating the last one.

    An Exception instance in the script is raised instead of returned.
    """

    def __init__(self, values: List[Any]):
        self.values = list(values)
        self.calls = 0

    async def __call__(self) -> int:
        index = min(self.calls, len(self.values) - 1)
        self.calls += 1
        value = self.values[index]
        if isinstance(value, Exception):
            raise value
        return value


class FakeSession:
    """Stands in for mcp.ClientSession."""

    def __init__(self, tools: List[Dict[str, Any]], results: Dict[str, Any] | None = None):
        self.tools = tools
        self.results = results or {}
        self.calls: List[tuple] = []

    async def list_tools(self) -> types.ListToolsResult:
        return types.ListToolsResult(tools=[
            types.Tool(
                name=t["name"],
                description=t.get("description", ""),
                inputSchema=t.get("inputSchema", {"type": "object", "properties": {}}),
            )
            for t in self.tools
        ])

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        self.calls.append((name, arguments))
        result = self.results.get(name, {"ok": True})
        if isinstance(result, Exception):
            raise result
        if isinstance(result, types.CallToolResult):
            return result
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=json.dumps(result))],
            isError=False,
        )


WEATHER_TOOLS = [
    {"name": "get-forecast", "description": "Get the weather forecast for a city",
     "inputSchema": {"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]}},
    {"name": "get-alerts", "description": "List active weather alerts for a region"},
]

MAIL_TOOLS = [
    {"name": "send_email", "description": "Send an email message"},
    {"name": "read_calendar", "description": "Read calendar events"},
]


def make_session_factory(sessions: Dict[str, FakeSession]):
    """Session factory serving a FakeSession per manual name; unknown names fail."""

    @asynccontextmanager
    async def factory(manual: ManualConfig):
        if manual.name not in sessions:
            raise ConnectionError(f"cannot reach {manual.name}")
        yield sessions[manual.name]

    return factory


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def wall_clock():
    return WallClock()


@pytest.fixture
def count_cache(tmp_path, wall_clock):
    return ToolCountCache(tmp_path / ".tool_cache.json", ttl_ms=60_000, now_ms=wall_clock)


@pytest.fixture
def discovery_config():
    return DiscoveryConfig(
        poll_interval_ms=100,
        stable_threshold=2,
        timeout_ms=1000,
        early_exit_threshold=0.95,
        min_tools_for_early_exit=100,
    )


@pytest.fixture
def sessions():
    return {
        "weather": FakeSession(WEATHER_TOOLS, {"get-forecast": {"city": "Oslo", "forecast": "rain"}}),
        "mail": FakeSession(MAIL_TOOLS),
    }


@pytest.fixture
def tool_client(sessions):
    return ToolClient(
        max_retries=2,
        initial_backoff=0.01,
        max_backoff=0.02,
        session_factory=make_session_factory(sessions),
        shutdown_timeout=1.0,
    )


@pytest.fixture
def bridge_settings(tmp_path, discovery_config):
    return BridgeSettings(state_dir=tmp_path, discovery=discovery_config)


@pytest.fixture
def bridge_context(bridge_settings, tool_client, fake_clock, wall_clock):
    return BridgeContext.create(
        bridge_settings,
        client=tool_client,
        clock=fake_clock,
        sleep=fake_clock.sleep,
        now_ms=wall_clock,
    )
