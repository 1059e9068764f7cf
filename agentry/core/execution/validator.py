"""
agentry.core.execution.validator - Plan Validator

Structural checks run once, before any step executes:
- step ids are unique
- every ``depends_on`` entry names a declared step
- the dependency graph has no cycles

Parameter checks run per step, after reference resolution, through a
``SchemaValidator`` port so the JSON-schema library can be swapped out.
"""

import json
import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from jsonschema import Draft7Validator, SchemaError, validators

from agentry.core.tools.base import Tool

from .errors import CircularDependencyError, DanglingDependencyError, DuplicateStepError
from .models import ExecutionPlan, ValidationResult
from .references import extract_template_references


class SchemaValidator(Protocol):
    """Validates a value against a JSON schema without raising."""

    def validate(self, instance: Any, schema: dict[str, Any]) -> ValidationResult: ...


class JsonSchemaValidator:
    """
    SchemaValidator backed by ``jsonschema``.

    The validator class follows the schema's ``$schema`` keyword and defaults
    to Draft 7. Compiled validators are cached per schema.
    """

    def __init__(self) -> None:
        self._cache: dict[str, Any] = {}

    def validate(self, instance: Any, schema: dict[str, Any]) -> ValidationResult:
        try:
            checker = self._compile(schema)
        except SchemaError as e:
            return ValidationResult(
                is_valid=False,
                errors=[{"keyword": "schema", "path": "", "message": f"Invalid schema: {e.message}"}],
            )

        errors = [
            {
                "keyword": error.validator,
                "path": "/".join(str(part) for part in error.absolute_path),
                "message": error.message,
            }
            for error in sorted(checker.iter_errors(instance), key=lambda e: list(map(str, e.path)))
        ]
        return ValidationResult(is_valid=not errors, errors=errors or None)

    def _compile(self, schema: dict[str, Any]) -> Any:
        key = json.dumps(schema, sort_keys=True, default=str)
        checker = self._cache.get(key)
        if checker is None:
            cls = validators.validator_for(schema, default=Draft7Validator)
            cls.check_schema(schema)
            checker = cls(schema)
            self._cache[key] = checker
        return checker


class _Mark(Enum):
    VISITING = 1
    VISITED = 2


class PlanValidator:
    """
    Validates plan structure and step parameters.

    Example:
        >>> validator = PlanValidator()
        >>> validator.validate_structure(plan, tools)  # raises on dangling deps / cycles
        >>> result = validator.validate_parameters({"lat": 4.6}, weather_tool.params_schema)
        >>> result.is_valid
        True
    """

    def __init__(
        self,
        schema_validator: SchemaValidator | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._schema_validator = schema_validator or JsonSchemaValidator()
        self._logger = logger or logging.getLogger(__name__)

    def validate_structure(self, plan: ExecutionPlan, tools: Sequence[Tool]) -> None:
        """
        Check a plan before execution.

        Unknown tools and suspicious placeholders only log warnings; the
        scheduler isolates those failures per step.

        Raises:
            DuplicateStepError: Two steps share an id
            DanglingDependencyError: A step depends on an undeclared step
            CircularDependencyError: The dependency graph has a cycle
        """
        tool_names = {t.name for t in tools}
        step_ids: set[str] = set()
        for step in plan.steps:
            if step.id in step_ids:
                raise DuplicateStepError(step.id)
            step_ids.add(step.id)

        for step in plan.steps:
            if step.tool_name not in tool_names:
                self._logger.warning(
                    f"Tool '{step.tool_name}' not found during plan validation",
                    extra={"step_id": step.id, "available_tools": sorted(tool_names)},
                )

            for dep_id in step.depends_on:
                if dep_id not in step_ids:
                    raise DanglingDependencyError(step.id, dep_id)

            self._check_references(step.id, step.params, step.depends_on, step_ids)

        self._detect_cycles(plan)

    def validate_parameters(self, params: Any, schema: dict[str, Any] | None) -> ValidationResult:
        """Validate params against a tool's schema. Never raises."""
        if not schema:
            return ValidationResult(is_valid=True)
        return self._schema_validator.validate(params, schema)

    def _check_references(
        self, step_id: str, params: Any, depends_on: list[str], step_ids: set[str]
    ) -> None:
        serialized = json.dumps(params, default=str)
        for ref in extract_template_references(serialized):
            if ref.step_id not in step_ids:
                self._logger.warning(
                    f"Step '{step_id}' references undeclared step '{ref.step_id}'",
                    extra={"step_id": step_id, "reference": ref.step_id},
                )
            elif ref.step_id not in depends_on:
                self._logger.warning(
                    f"Step '{step_id}' references '{ref.step_id}' without depending on it",
                    extra={"step_id": step_id, "reference": ref.step_id},
                )

    def _detect_cycles(self, plan: ExecutionPlan) -> None:
        """Three-colour DFS over ``depends_on`` using an explicit stack."""
        adjacency = {step.id: list(step.depends_on) for step in plan.steps}
        marks: dict[str, _Mark] = {}

        for root in adjacency:
            if root in marks:
                continue

            marks[root] = _Mark.VISITING
            path = [root]
            stack = [iter(adjacency[root])]

            while stack:
                neighbor = next(stack[-1], None)
                if neighbor is None:
                    marks[path.pop()] = _Mark.VISITED
                    stack.pop()
                    continue

                mark = marks.get(neighbor)
                if mark is _Mark.VISITING:
                    cycle = path[path.index(neighbor) :] + [neighbor]
                    raise CircularDependencyError(cycle)
                if mark is None:
                    marks[neighbor] = _Mark.VISITING
                    path.append(neighbor)
                    stack.append(iter(adjacency.get(neighbor, ())))
