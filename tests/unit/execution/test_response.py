"""
Tests for agentry.core.execution.response - conversational humanization.
"""

import pytest

from agentry.core.execution.response import ResponseProcessor
from tests.fakes import ScriptedAdapter


@pytest.fixture
def processor() -> ResponseProcessor:
    return ResponseProcessor()


def test_build_prompt_with_system_prompt(processor: ResponseProcessor):
    prompt = processor.build_prompt("Weather?", "s1: sunny", "You are terse.")
    assert prompt.startswith("You are terse.\n\nThe user asked: \"Weather?\"")
    assert "s1: sunny" in prompt


def test_build_prompt_without_system_prompt(processor: ResponseProcessor):
    assert processor.build_prompt("Weather?", "s1: sunny").startswith('The user asked: "Weather?"')


@pytest.mark.asyncio
async def test_returns_model_reply(processor: ResponseProcessor):
    model = ScriptedAdapter(completions=["It is sunny."])

    reply = await processor.generate_conversational_response("Weather?", "s1: sunny", model)

    assert reply == "It is sunny."
    assert len(model.prompts) == 1


@pytest.mark.asyncio
async def test_model_error_returns_raw(processor: ResponseProcessor):
    model = ScriptedAdapter(completions=[RuntimeError("rate limited")])

    reply = await processor.generate_conversational_response("Weather?", "s1: sunny", model)

    assert reply == "s1: sunny"


@pytest.mark.asyncio
async def test_blank_reply_returns_raw(processor: ResponseProcessor):
    model = ScriptedAdapter(completions=["   "])

    reply = await processor.generate_conversational_response("Weather?", "s1: sunny", model)

    assert reply == "s1: sunny"
