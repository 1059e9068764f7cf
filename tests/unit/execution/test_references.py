"""
Tests for agentry.core.execution.references - placeholder resolution and coercion.
"""

import logging

import pytest

from agentry.core.execution.models import ReferenceResolutionContext
from agentry.core.execution.references import (
    ReferenceResolver,
    TemplateReference,
    coerce_type,
    extract_template_references,
    stringify,
)


@pytest.fixture
def resolver() -> ReferenceResolver:
    return ReferenceResolver()


def _context(**results: object) -> ReferenceResolutionContext:
    return ReferenceResolutionContext(results=results)


# ============================================================================
# Whole-placeholder resolution
# ============================================================================


class TestWholePlaceholder:
    def test_keeps_typed_value(self, resolver: ReferenceResolver) -> None:
        resolved = resolver.resolve_references({"count": "{{s1}}"}, _context(s1=42))
        assert resolved == {"count": 42}

    def test_property_of_dict_result(self, resolver: ReferenceResolver) -> None:
        context = _context(s1={"latitude": 4.61, "longitude": -74.08})
        schema = {
            "type": "object",
            "properties": {"lat": {"type": "number"}, "lon": {"type": "number"}},
        }
        resolved = resolver.resolve_references(
            {"lat": "{{s1.latitude}}", "lon": "{{s1.longitude}}"}, context, schema
        )
        assert resolved == {"lat": 4.61, "lon": -74.08}

    def test_property_of_json_string_result(self, resolver: ReferenceResolver) -> None:
        context = _context(s1='{"latitude": 4.61}')
        assert resolver.resolve_references("{{s1.latitude}}", context) == 4.61

    def test_index_into_list_result(self, resolver: ReferenceResolver) -> None:
        context = _context(s1=[{"city": "Bogota"}, {"city": "Lima"}], s2='["x", "y"]')
        assert resolver.resolve_references("{{s1.1}}", context) == {"city": "Lima"}
        assert resolver.resolve_references("{{s2.0}} and {{s2.1}}", context) == "x and y"

    def test_returns_dict_result_whole(self, resolver: ReferenceResolver) -> None:
        context = _context(s1={"a": 1})
        assert resolver.resolve_references("{{s1}}", context) == {"a": 1}

    def test_coerces_to_schema_type(self, resolver: ReferenceResolver) -> None:
        context = _context(s1="4.5")
        schema = {"type": "object", "properties": {"lat": {"type": "number"}}}
        assert resolver.resolve_references({"lat": "{{s1}}"}, context, schema) == {"lat": 4.5}

    def test_stored_none_is_not_missing(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("{{s1}}", _context(s1=None)) is None


# ============================================================================
# Interpolation
# ============================================================================


class TestInterpolation:
    def test_embedded_placeholder(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("x={{s1}}", _context(s1=42)) == "x=42"

    def test_multiple_placeholders(self, resolver: ReferenceResolver) -> None:
        context = _context(s1={"city": "Bogota"}, s2=True)
        resolved = resolver.resolve_references("{{s1.city}} sunny={{s2}}", context)
        assert resolved == "Bogota sunny=true"

    def test_container_is_serialized(self, resolver: ReferenceResolver) -> None:
        resolved = resolver.resolve_references("data: {{s1}}", _context(s1={"a": 1}))
        assert resolved == 'data: {"a": 1}'

    def test_missing_reference_interpolates_empty(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("a{{nope}}b", _context()) == "ab"


# ============================================================================
# Unresolvable references
# ============================================================================


class TestUnresolvable:
    def test_missing_step(self, resolver: ReferenceResolver, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert resolver.resolve_references("{{s9}}", _context(s1=1)) == ""
        assert "Step result not found for reference: s9" in caplog.text

    def test_property_on_non_json_string(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("{{s1.temp}}", _context(s1="plain text")) == ""

    def test_missing_property(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("{{s1.temp}}", _context(s1={"other": 1})) == ""

    def test_property_on_scalar(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("{{s1.temp}}", _context(s1=12)) == ""

    def test_index_out_of_range(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references("{{s1.5}}", _context(s1=["a", "b"])) == ""


# ============================================================================
# Recursion
# ============================================================================


class TestRecursion:
    def test_list_items_use_items_schema(self, resolver: ReferenceResolver) -> None:
        schema = {
            "type": "object",
            "properties": {"values": {"type": "array", "items": {"type": "integer"}}},
        }
        resolved = resolver.resolve_references(
            {"values": ["{{s1}}", "7.9", 3]}, _context(s1="5"), schema
        )
        assert resolved == {"values": [5, 7, 3]}

    def test_nested_objects(self, resolver: ReferenceResolver) -> None:
        resolved = resolver.resolve_references(
            {"outer": {"inner": "{{s1.v}}"}}, _context(s1={"v": "deep"})
        )
        assert resolved == {"outer": {"inner": "deep"}}

    def test_non_string_scalars_pass_through(self, resolver: ReferenceResolver) -> None:
        assert resolver.resolve_references({"n": 3, "b": False}, _context()) == {"n": 3, "b": False}

    def test_does_not_mutate_input(self, resolver: ReferenceResolver) -> None:
        params = {"q": "{{s1}}"}
        resolver.resolve_references(params, _context(s1="x"))
        assert params == {"q": "{{s1}}"}


# ============================================================================
# Coercion
# ============================================================================


class TestCoerceType:
    def test_number_from_string(self) -> None:
        assert coerce_type("4.6", {"type": "number"}) == 4.6

    def test_number_keeps_integers_exact(self) -> None:
        result = coerce_type("42", {"type": "number"})
        assert result == 42
        assert isinstance(result, int)

    def test_number_rejects_non_numeric(self) -> None:
        assert coerce_type("abc", {"type": "number"}) == "abc"

    def test_number_rejects_infinity(self) -> None:
        assert coerce_type("inf", {"type": "number"}) == "inf"

    def test_integer_floors(self) -> None:
        assert coerce_type("7.9", {"type": "integer"}) == 7
        assert coerce_type(-2.5, {"type": "integer"}) == -3

    def test_integer_leaves_garbage(self) -> None:
        assert coerce_type("seven", {"type": "integer"}) == "seven"

    def test_boolean_from_string(self) -> None:
        assert coerce_type("TRUE", {"type": "boolean"}) is True
        assert coerce_type("yes", {"type": "boolean"}) is False

    def test_boolean_from_other(self) -> None:
        assert coerce_type(1, {"type": "boolean"}) is True
        assert coerce_type(0, {"type": "boolean"}) is False

    def test_string_from_number(self) -> None:
        assert coerce_type(42, {"type": "string"}) == "42"

    def test_string_from_dict(self) -> None:
        assert coerce_type({"a": 1}, {"type": "string"}) == '{"a": 1}'

    def test_no_schema(self) -> None:
        assert coerce_type("42", None) == "42"

    def test_none_passes_through(self) -> None:
        assert coerce_type(None, {"type": "number"}) is None

    def test_stringify(self) -> None:
        assert stringify(None) == ""
        assert stringify(False) == "false"
        assert stringify([1, 2]) == "[1, 2]"
        assert stringify(1.5) == "1.5"


# ============================================================================
# Reference extraction
# ============================================================================


def test_extract_template_references():
    refs = extract_template_references('{"lat": "{{s1.latitude}}", "q": "find {{s0}}"}')
    assert refs == [
        TemplateReference("s1", "latitude"),
        TemplateReference("s0", None),
    ]


def test_extract_ignores_malformed():
    assert extract_template_references("{{ s1 }} {s2} {{s3.}}") == []
