"""
Tests for agentry.core.tools.safety - timeout and retry wrapper.
"""

import asyncio

import pytest

from agentry.core.tools import with_safety
from tests.fakes import make_tool


@pytest.mark.asyncio
async def test_passes_through_result():
    wrapped = with_safety(make_tool("ok", lambda params: "fine"), timeout_ms=500)
    assert await wrapped.invoke({}) == "fine"


@pytest.mark.asyncio
async def test_timeout():
    async def slow(params):
        await asyncio.sleep(1)
        return "late"

    wrapped = with_safety(make_tool("slow", slow), timeout_ms=20)

    with pytest.raises(TimeoutError, match="Tool timeout after 20ms"):
        await wrapped.invoke({})


@pytest.mark.asyncio
async def test_retries_until_success():
    calls = {"count": 0}

    def flaky(params):
        calls["count"] += 1
        if calls["count"] < 3:
            raise ConnectionError("try again")
        return "third time lucky"

    wrapped = with_safety(make_tool("flaky", flaky), max_retries=2, backoff_ms=1)

    assert await wrapped.invoke({}) == "third time lucky"
    assert calls["count"] == 3


@pytest.mark.asyncio
async def test_gives_up_after_retries():
    calls = {"count": 0}

    def always_fails(params):
        calls["count"] += 1
        raise ConnectionError("down")

    wrapped = with_safety(make_tool("down", always_fails), max_retries=1)

    with pytest.raises(ConnectionError, match="down"):
        await wrapped.invoke({})
    assert calls["count"] == 2


def test_original_tool_untouched():
    def action(params):
        return "raw"

    original = make_tool("raw", action)
    wrapped = with_safety(original, timeout_ms=100)

    assert original.action is action
    assert wrapped.action is not action
    assert wrapped.name == original.name
    assert wrapped.params_schema == original.params_schema


def test_negative_arguments_rejected():
    with pytest.raises(ValueError):
        with_safety(make_tool("x", lambda p: None), timeout_ms=-1)
