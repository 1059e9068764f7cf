"""
Unit tests for agentry.agent - the Agent facade.
"""

from unittest.mock import AsyncMock

import pytest

from agentry.agent import Agent
from agentry.core.execution import ExecutionEngine
from agentry.core.execution.models import RunOptions
from agentry.core.hooks import HOOK_PLANNED_START
from agentry.memory import NO_MEMORY_CONTEXT
from agentry.settings import AgentrySettings
from tests.fakes import InMemoryStore, ScriptedAdapter, make_tool, plan_json, plan_step


def _echo_tool():
    return make_tool("echo", lambda params: params.get("text", ""))


HELLO_PLAN = plan_json(plan_step("s1", "echo", {"text": "hello"}))


@pytest.fixture
def settings() -> AgentrySettings:
    return AgentrySettings(_env_file=None)


# ============================================================================
# Configuration
# ============================================================================


class TestConfiguration:
    def test_tools_and_prompt(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        agent.add_tool(_echo_tool())
        agent.set_prompt("You are helpful.")

        assert [t.name for t in agent.tools] == ["echo"]
        assert agent.prompt == "You are helpful."

    def test_duplicate_tool_rejected(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        agent.add_tool(_echo_tool())

        with pytest.raises(ValueError):
            agent.add_tool(_echo_tool())

    def test_memory_optional(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        agent.remember("ignored")
        assert agent.relevant_memories("anything") == []

    @pytest.mark.asyncio
    async def test_injected_engine_shares_hooks(self, settings: AgentrySettings):
        engine = ExecutionEngine()
        agent = Agent(settings=settings, engine=engine)
        agent.add_tool(_echo_tool())
        started = AsyncMock()
        agent.hooks.register(HOOK_PLANNED_START, started)

        await agent.run("Say hello", ScriptedAdapter(completions=[HELLO_PLAN, "Hello!"]))

        assert agent.hooks is engine.hooks
        started.assert_called_once()


# ============================================================================
# Run
# ============================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_planned_run(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        agent.add_tool(_echo_tool())
        agent.set_prompt("You are helpful.")
        model = ScriptedAdapter(completions=[HELLO_PLAN, "Hello from the agent"])

        assert await agent.run("Greet me", model) == "Hello from the agent"
        assert model.prompts[0].startswith("You are helpful.")

    @pytest.mark.asyncio
    async def test_failure_becomes_message(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        model = ScriptedAdapter(completions=["no plan for you"])

        response = await agent.run("Greet me", model)

        assert response.startswith("Execution failed: Failed to parse execution plan")

    @pytest.mark.asyncio
    async def test_cycle_reported(self, settings: AgentrySettings):
        agent = Agent(settings=settings)
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(
            completions=[
                plan_json(
                    plan_step("A", "echo", None, ["B"]),
                    plan_step("B", "echo", None, ["C"]),
                    plan_step("C", "echo", None, ["A"]),
                )
            ]
        )

        response = await agent.run("Loop forever", model)

        assert response == (
            "Execution failed: Plan validation failed: "
            "Circular dependency detected: A -> B -> C -> A"
        )

    @pytest.mark.asyncio
    async def test_settings_supply_default_options(self):
        agent = Agent(settings=AgentrySettings(_env_file=None, max_steps=1))
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(
            completions=[
                plan_json(plan_step("s1", "echo", {"text": "a"}), plan_step("s2", "echo", {"text": "b"}))
            ]
        )

        response = await agent.run("Two things", model)

        assert response == "Execution failed: Run exceeded max_steps=1 before step 's2'"

    @pytest.mark.asyncio
    async def test_explicit_options_win(self):
        agent = Agent(settings=AgentrySettings(_env_file=None, max_steps=1))
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(
            completions=[
                plan_json(plan_step("s1", "echo", {"text": "a"}), plan_step("s2", "echo", {"text": "b"})),
                "Both done",
            ]
        )

        assert await agent.run("Two things", model, RunOptions(max_steps=5)) == "Both done"


# ============================================================================
# Memory
# ============================================================================


class TestMemory:
    @pytest.mark.asyncio
    async def test_request_and_response_remembered(self, settings: AgentrySettings):
        store = InMemoryStore()
        agent = Agent(memory=store, settings=settings)
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(completions=[HELLO_PLAN, "Hi!"])

        await agent.run("Greet me", model)

        assert [(e.content, e.importance) for e in store.entries] == [
            ("Greet me", 0.8),
            ("Agent response: Hi!", 0.6),
        ]

    @pytest.mark.asyncio
    async def test_first_run_sees_no_context(self, settings: AgentrySettings):
        agent = Agent(memory=InMemoryStore(), settings=settings)
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(completions=[HELLO_PLAN, "Hi!"])

        await agent.run("Greet me", model)

        assert f"Context from memory:\n{NO_MEMORY_CONTEXT}" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_later_run_sees_earlier_turns(self, settings: AgentrySettings):
        store = InMemoryStore()
        store.add_memory("My name is Ana", "fact", 0.9)
        agent = Agent(memory=store, settings=settings)
        agent.add_tool(_echo_tool())
        model = ScriptedAdapter(completions=[HELLO_PLAN, "Hi Ana!"])

        await agent.run("Greet me", model)

        assert "[fact] My name is Ana" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_failed_run_still_remembered(self, settings: AgentrySettings):
        store = InMemoryStore()
        agent = Agent(memory=store, settings=settings)

        await agent.run("Greet me", ScriptedAdapter(completions=["???"]))

        assert store.entries[-1].content.startswith("Agent response: Execution failed:")

    @pytest.mark.asyncio
    async def test_context_size_from_settings(self):
        store = InMemoryStore()
        for i in range(4):
            store.add_memory(f"note {i}")
        agent = Agent(memory=store, settings=AgentrySettings(_env_file=None, memory_context_size=2))

        assert [e.content for e in agent.relevant_memories("q")] == ["note 2", "note 3"]
