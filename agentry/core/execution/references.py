"""
agentry.core.execution.references - Reference Resolver

Substitutes ``{{stepId}}`` / ``{{stepId.property}}`` placeholders in step
params with earlier step results.

A string that is exactly one placeholder resolves to the typed value, coerced
to the type the target schema asks for. Placeholders embedded in other text
are interpolated as strings. Unresolvable references become ``""`` with a
warning; resolution never raises.
"""

import json
import logging
import math
import re
from typing import Any, NamedTuple

from .models import ReferenceResolutionContext

_REFERENCE = r"\{\{(\w+)(?:\.(\w+))?\}\}"
_WHOLE_REFERENCE = re.compile(rf"^{_REFERENCE}$")
_ANY_REFERENCE = re.compile(_REFERENCE)

# Marks "nothing to substitute" apart from a stored None result.
_MISSING = object()


class TemplateReference(NamedTuple):
    """One ``{{step_id[.property]}}`` occurrence."""

    step_id: str
    property: str | None = None


def extract_template_references(serialized_params: str) -> list[TemplateReference]:
    """
    List every placeholder in a serialized params blob, in order of appearance.

    Example:
        >>> extract_template_references('{"lat": "{{s1.latitude}}", "q": "{{s0}}"}')
        [TemplateReference(step_id='s1', property='latitude'), TemplateReference(step_id='s0', property=None)]
    """
    return [
        TemplateReference(step_id, prop or None)
        for step_id, prop in _ANY_REFERENCE.findall(serialized_params)
    ]


def stringify(value: Any) -> str:
    """String form used for interpolation and ``string`` coercion."""
    if isinstance(value, dict | list):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def coerce_type(value: Any, schema: dict[str, Any] | None) -> Any:
    """
    Coerce a value to the JSON type named by ``schema["type"]``.

    Never raises: a value that cannot be converted is returned unchanged.
    """
    if not schema or value is None:
        return value

    target_type = schema.get("type")

    if target_type == "number":
        if isinstance(value, str):
            return _parse_number(value, value)
        return value

    if target_type == "integer":
        if isinstance(value, str):
            number = _parse_number(value, None)
            if number is None:
                return value
            return number if isinstance(number, int) else math.floor(number)
        if isinstance(value, float) and math.isfinite(value):
            return math.floor(value)
        return value

    if target_type == "boolean":
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)

    if target_type == "string":
        return stringify(value)

    return value


def _parse_number(text: str, default: Any) -> Any:
    stripped = text.strip()
    if not stripped:
        return default
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return default
    # Reject inf/nan spellings that float() accepts but JSON numbers cannot hold
    return number if math.isfinite(number) else default


class ReferenceResolver:
    """
    Resolves placeholders in step params against prior step results.

    Example:
        >>> resolver = ReferenceResolver()
        >>> context = ReferenceResolutionContext(results={"s1": {"latitude": 4.6}})
        >>> resolver.resolve_references(
        ...     {"lat": "{{s1.latitude}}"},
        ...     context,
        ...     {"type": "object", "properties": {"lat": {"type": "number"}}},
        ... )
        {'lat': 4.6}
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def resolve_references(
        self,
        params: Any,
        context: ReferenceResolutionContext,
        schema: dict[str, Any] | None = None,
    ) -> Any:
        """
        Recursively resolve placeholders in ``params``.

        Args:
            params: Raw params (any JSON-like value)
            context: Prior step results
            schema: JSON schema fragment describing ``params``, used for coercion

        Returns:
            New value with every placeholder substituted
        """
        if isinstance(params, str):
            return self._resolve_string(params, context, schema)

        if isinstance(params, list):
            item_schema = _sub_schema(schema, "items")
            return [self.resolve_references(item, context, item_schema) for item in params]

        if isinstance(params, dict):
            properties = _sub_schema(schema, "properties") or {}
            return {
                key: self.resolve_references(value, context, properties.get(key))
                for key, value in params.items()
            }

        return coerce_type(params, schema)

    def _resolve_string(
        self, text: str, context: ReferenceResolutionContext, schema: dict[str, Any] | None
    ) -> Any:
        match = _WHOLE_REFERENCE.match(text)
        if match:
            step_id, prop = match.groups()
            value = self._lookup(step_id, prop, context)
            if value is _MISSING:
                return ""
            return coerce_type(value, schema)

        if "{{" not in text:
            return coerce_type(text, schema)

        return self._interpolate(text, context)

    def _interpolate(self, text: str, context: ReferenceResolutionContext) -> str:
        def replace(match: re.Match[str]) -> str:
            value = self._lookup(match.group(1), match.group(2), context)
            return "" if value is _MISSING else stringify(value)

        return _ANY_REFERENCE.sub(replace, text)

    def _lookup(self, step_id: str, prop: str | None, context: ReferenceResolutionContext) -> Any:
        if step_id not in context.results:
            self._logger.warning(
                f"Step result not found for reference: {step_id}",
                extra={"step_id": step_id},
            )
            return _MISSING

        result = context.results[step_id]
        if prop is None:
            return result

        container = result
        if isinstance(result, str):
            try:
                container = json.loads(result)
            except json.JSONDecodeError:
                self._logger.warning(
                    f"Step result for {step_id} is not JSON; cannot read '{prop}'",
                    extra={"step_id": step_id, "property": prop},
                )
                return _MISSING

        if isinstance(container, dict) and prop in container:
            return container[prop]
        if isinstance(container, list) and prop.isdecimal() and int(prop) < len(container):
            return container[int(prop)]

        self._logger.warning(
            f"Property '{prop}' not found in result of step {step_id}",
            extra={"step_id": step_id, "property": prop},
        )
        return _MISSING


def _sub_schema(schema: dict[str, Any] | None, key: str) -> Any:
    if not isinstance(schema, dict):
        return None
    value = schema.get(key)
    return value if isinstance(value, dict) else None
