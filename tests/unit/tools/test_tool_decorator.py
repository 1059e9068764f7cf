"""
Tests for agentry.core.tools.decorator - @tool decorator and collect_tools.
"""

import inspect
import types
from typing import Any, Optional

import pytest

from agentry.core.tools.decorator import (
    _build_params_schema,
    _python_type_to_json_schema,
    collect_tools,
    get_tool,
    tool,
)

# ============================================================================
# Type mapping tests
# ============================================================================


class TestPythonTypeToJsonSchema:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            (str, "string"),
            (int, "integer"),
            (float, "number"),
            (bool, "boolean"),
            (list, "array"),
            (dict, "object"),
            (type(None), "null"),
        ],
    )
    def test_plain_types(self, annotation: Any, expected: str) -> None:
        assert _python_type_to_json_schema(annotation) == {"type": expected}

    def test_list_of_numbers(self) -> None:
        assert _python_type_to_json_schema(list[float]) == {
            "type": "array",
            "items": {"type": "number"},
        }

    def test_generic_dict(self) -> None:
        assert _python_type_to_json_schema(dict[str, Any]) == {"type": "object"}

    def test_optional_unwraps(self) -> None:
        assert _python_type_to_json_schema(float | None) == {"type": "number"}
        assert _python_type_to_json_schema(Optional[int]) == {"type": "integer"}

    def test_multi_union_falls_back_to_string(self) -> None:
        assert _python_type_to_json_schema(int | str) == {"type": "string"}

    def test_missing_annotation(self) -> None:
        assert _python_type_to_json_schema(inspect.Parameter.empty) == {"type": "string"}


# ============================================================================
# Schema building tests
# ============================================================================


class TestBuildParamsSchema:
    def test_required_and_defaults(self) -> None:
        async def weather(lat: float, lon: float, units: str = "metric") -> None:
            pass

        schema = _build_params_schema(weather)

        assert schema == {
            "type": "object",
            "properties": {
                "lat": {"type": "number"},
                "lon": {"type": "number"},
                "units": {"type": "string", "default": "metric"},
            },
            "required": ["lat", "lon"],
        }

    def test_no_params(self) -> None:
        async def ping() -> None:
            pass

        schema = _build_params_schema(ping)
        assert schema == {"type": "object", "properties": {}}


# ============================================================================
# Decorator tests
# ============================================================================


class TestToolDecorator:
    def test_builds_tool(self) -> None:
        @tool(name="geocode", description="Resolve a place", category="maps", tags=["geo"])
        async def geocode(location: str) -> dict:
            return {"location": location}

        built = get_tool(geocode)

        assert built is not None
        assert built.name == "geocode"
        assert built.description == "Resolve a place"
        assert built.category == "maps"
        assert built.tags == ["geo"]
        assert built.params_schema["required"] == ["location"]

    def test_defaults_from_function(self) -> None:
        @tool()
        async def lookup_city(code: str) -> str:
            """Find a city by airport code."""
            return code

        built = get_tool(lookup_city)
        assert built.name == "lookup_city"
        assert built.description == "Find a city by airport code."

    def test_result_schema(self) -> None:
        schema = {"type": "object", "properties": {"temp": {"type": "number"}}}

        @tool(result_schema=schema)
        async def forecast(city: str) -> dict:
            return {"temp": 20}

        assert get_tool(forecast).result_schema == schema

    @pytest.mark.asyncio
    async def test_action_spreads_params(self) -> None:
        @tool()
        async def add(a: int, b: int = 1) -> int:
            return a + b

        built = get_tool(add)
        assert await built.invoke({"a": 2, "b": 5}) == 7
        assert await built.invoke({"a": 2}) == 3

    @pytest.mark.asyncio
    async def test_function_still_callable(self) -> None:
        @tool()
        async def double(x: int) -> int:
            return x * 2

        assert await double(4) == 8

    def test_rejects_sync_function(self) -> None:
        with pytest.raises(TypeError, match="async functions"):

            @tool()
            def not_async(x: int) -> int:
                return x

    def test_undecorated_has_no_tool(self) -> None:
        async def plain() -> None:
            pass

        assert get_tool(plain) is None


# ============================================================================
# collect_tools tests
# ============================================================================


def test_collect_tools_from_module():
    module = types.ModuleType("weather_tools")

    @tool(name="forecast")
    async def forecast(city: str) -> str:
        return city

    @tool(name="alerts")
    async def alerts(city: str) -> str:
        return city

    async def helper() -> None:
        pass

    module.forecast = forecast
    module.alerts = alerts
    module.helper = helper
    module.CONSTANT = 3

    names = [t.name for t in collect_tools(module)]
    assert names == ["alerts", "forecast"]
