"""Tests for the bridge operations run through the ToolExecutor."""

import pytest

from codemode_mcp.client import ManualConfig
from codemode_mcp.discovery import GateState
from codemode_mcp.tools import ToolExecutor
from codemode_mcp.tools.system.call_tool import TRUNCATION_MARKER


@pytest.fixture
def executor():
    return ToolExecutor()


async def register(context, *names):
    for name in names:
        await context.client.register_manual(ManualConfig(name=name, command=f"{name}-server"))


def test_discovers_every_operation(executor):
    names = [meta.name for meta in executor.discover_all_tools()]
    assert names == [
        "call_tool",
        "deregister_manual",
        "discovery_status",
        "get_required_keys_for_tool",
        "list_tools",
        "register_manual",
        "search_tools",
        "tool_info",
    ]


@pytest.mark.asyncio
async def test_search_tools_waits_for_discovery(executor, bridge_context):
    await register(bridge_context, "weather", "mail")

    result = await executor.execute_tool("search_tools", {"task_description": "send an email"}, bridge_context)

    assert bridge_context.gate.state is GateState.COMPLETED
    assert result["success"] is True
    assert result["tools"][0]["name"] == "mail.send_email"
    assert result["count"] == 1
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_search_tools_limit(executor, bridge_context):
    await register(bridge_context, "weather")

    result = await executor.execute_tool(
        "search_tools", {"task_description": "weather", "limit": 1}, bridge_context
    )

    assert result["count"] == 1
    assert result["tools"][0]["input_schema"]["type"] == "object"
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_list_tools_returns_interface_names(executor, bridge_context):
    await register(bridge_context, "weather")

    result = await executor.execute_tool("list_tools", {}, bridge_context)

    assert sorted(result["tools"]) == ["weather.get_alerts", "weather.get_forecast"]
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_tool_info(executor, bridge_context):
    await register(bridge_context, "weather")

    result = await executor.execute_tool("tool_info", {"tool_name": "weather.get_forecast"}, bridge_context)

    assert result["success"] is True
    assert result["registered_name"] == "weather.get-forecast"
    assert result["manual"] == "weather"
    assert result["input_schema"]["required"] == ["city"]

    missing = await executor.execute_tool("tool_info", {"tool_name": "weather.nope"}, bridge_context)
    assert missing["success"] is False
    assert "not found" in missing["error"]
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_call_tool_returns_upstream_result(executor, bridge_context, sessions):
    await register(bridge_context, "weather")

    result = await executor.execute_tool(
        "call_tool",
        {"tool_name": "weather.get_forecast", "arguments": {"city": "Oslo"}},
        bridge_context,
    )

    assert result["success"] is True
    assert result["tool_name"] == "weather.get_forecast"
    assert result["result"] == {"city": "Oslo", "forecast": "rain"}
    assert result["truncated"] is False
    assert sessions["weather"].calls == [("get-forecast", {"city": "Oslo"})]
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_call_tool_truncates_large_output(executor, bridge_context, sessions):
    sessions["weather"].results["get-alerts"] = {"alerts": ["storm"] * 100}
    await register(bridge_context, "weather")

    result = await executor.execute_tool(
        "call_tool",
        {"tool_name": "weather.get-alerts", "max_output_size": 20},
        bridge_context,
    )

    assert result["success"] is True
    assert result["truncated"] is True
    assert result["result"].endswith(TRUNCATION_MARKER)
    assert len(result["result"]) == 20 + len(TRUNCATION_MARKER)
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_call_unknown_tool_fails_softly(executor, bridge_context):
    await register(bridge_context, "weather")

    result = await executor.execute_tool("call_tool", {"tool_name": "github.create_issue"}, bridge_context)

    assert result["success"] is False
    assert result["error"] == "Tool 'github.create_issue' not found"
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_required_keys(executor, bridge_context):
    await bridge_context.client.register_manual(
        ManualConfig(name="weather", command="weather-server", env={"WEATHER_TOKEN": "secret"})
    )

    result = await executor.execute_tool(
        "get_required_keys_for_tool", {"tool_name": "weather.get_alerts"}, bridge_context
    )

    assert result["required_variables"] == ["WEATHER_TOKEN"]
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_register_and_deregister_manual(executor, bridge_context):
    registered = await executor.execute_tool(
        "register_manual",
        {"manual_call_template": {"name": "mail", "command": "mail-server"}},
        bridge_context,
    )
    assert registered["success"] is True
    assert registered["tool_count"] == 2

    duplicate = await executor.execute_tool(
        "register_manual",
        {"manual_call_template": {"name": "mail", "command": "mail-server"}},
        bridge_context,
    )
    assert duplicate["success"] is False
    assert "already registered" in duplicate["error"]

    removed = await executor.execute_tool("deregister_manual", {"manual_name": "mail"}, bridge_context)
    assert removed["success"] is True
    assert await bridge_context.client.count_tools() == 0

    again = await executor.execute_tool("deregister_manual", {"manual_name": "mail"}, bridge_context)
    assert again["success"] is False
    assert again["error"] == "Manual 'mail' not found."


@pytest.mark.asyncio
async def test_register_manual_does_not_start_discovery(executor, bridge_context):
    await executor.execute_tool(
        "register_manual",
        {"manual_call_template": {"name": "weather", "command": "weather-server"}},
        bridge_context,
    )

    assert bridge_context.gate.state is GateState.NOT_STARTED
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_discovery_status_reports_without_waiting(executor, bridge_context):
    await register(bridge_context, "weather")

    before = await executor.execute_tool("discovery_status", {}, bridge_context)
    assert before["gate_state"] == "not_started"
    assert before["outcome"] is None
    assert before["tool_count"] == 2
    assert before["manuals"][0]["connected"] is True

    await bridge_context.ensure_ready()
    after = await executor.execute_tool("discovery_status", {}, bridge_context)
    assert after["gate_state"] == "completed"
    assert after["outcome"]["status"] == "complete"
    assert after["outcome"]["tool_count"] == 2
    await bridge_context.client.close()


@pytest.mark.asyncio
async def test_discovery_times_out_without_manuals(executor, bridge_context):
    result = await executor.execute_tool("list_tools", {}, bridge_context)

    assert result["success"] is True
    assert result["tools"] == []
    assert bridge_context.gate.outcome.status.value == "timed_out"


@pytest.mark.asyncio
async def test_unknown_operation(executor, bridge_context):
    result = await executor.execute_tool("does_not_exist", {}, bridge_context)
    assert result == {"success": False, "error": "Operation not found: does_not_exist"}


@pytest.mark.asyncio
async def test_invalid_arguments(executor, bridge_context):
    result = await executor.execute_tool("search_tools", {"limit": 0}, bridge_context)
    assert result["success"] is False
    assert "Invalid arguments for search_tools" in result["error"]
