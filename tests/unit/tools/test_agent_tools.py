"""
Tests for agentry.core.tools.agent_tools - sub-agent and handoff tools.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from agentry.core.tools import AgentRegistry, create_agent_tool, create_handoff_tool
from tests.fakes import ScriptedAdapter


def _fake_agent(reply: str) -> MagicMock:
    agent = MagicMock()
    agent.run = AsyncMock(return_value=reply)
    return agent


@pytest.mark.asyncio
async def test_agent_tool_runs_sub_agent():
    sub_agent = _fake_agent("translated")
    model = ScriptedAdapter()
    tool = create_agent_tool("translator", "Translates text", sub_agent, model)

    assert tool.params_schema["required"] == ["input"]
    assert await tool.invoke({"input": "hola"}) == "translated"
    sub_agent.run.assert_awaited_once_with("hola", model, None)


@pytest.mark.asyncio
async def test_handoff_resolves_target_at_call_time():
    registry = AgentRegistry()
    model = ScriptedAdapter()
    tool = create_handoff_tool(registry, model)
    billing = _fake_agent("refund issued")

    registry.register("billing", billing)

    assert tool.name == "handoff_to_agent"
    assert await tool.invoke({"targetAgent": "billing", "input": "refund"}) == "refund issued"


@pytest.mark.asyncio
async def test_handoff_unknown_target():
    tool = create_handoff_tool(AgentRegistry(), ScriptedAdapter())

    with pytest.raises(LookupError, match="Target agent 'ghost' not found"):
        await tool.invoke({"targetAgent": "ghost", "input": "hi"})


def test_registry_rejects_different_agent_same_name():
    registry = AgentRegistry()
    first = _fake_agent("a")
    registry.register("support", first)
    registry.register("support", first)

    with pytest.raises(ValueError, match="already registered"):
        registry.register("support", _fake_agent("b"))

    assert registry.names() == ["support"]
    assert "support" in registry
    assert registry.get("sales") is None
