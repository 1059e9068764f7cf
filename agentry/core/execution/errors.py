"""
agentry.core.execution.errors - Execution exceptions

Run-level errors (plan parsing, structural validation, budgets) propagate out
of the planned path. Step-level errors never escape the scheduler: they are
turned into a failed step and its ``"Error: ..."`` result.

Example:
    >>> from agentry.core.execution.errors import StructuralValidationError
    >>>
    >>> try:
    ...     validator.validate_structure(plan, tools)
    ... except StructuralValidationError as e:
    ...     logger.error(f"Rejected plan: {e}")
"""

from typing import Any


class AgentryError(Exception):
    """Base exception for all execution errors."""


# ============================================================================
# Run-level errors
# ============================================================================


class PlanParseError(AgentryError):
    """
    Raised when the planning response cannot be turned into plan steps.

    The raw model text is kept on ``raw_response`` for diagnostics.
    """

    def __init__(self, message: str, raw_response: str) -> None:
        super().__init__(message)
        self.raw_response = raw_response


class StructuralValidationError(AgentryError):
    """Raised when a plan is rejected before any step runs."""


class DuplicateStepError(StructuralValidationError):
    def __init__(self, step_id: str) -> None:
        super().__init__(f"Plan validation failed: Duplicate step id '{step_id}'")
        self.step_id = step_id


class DanglingDependencyError(StructuralValidationError):
    def __init__(self, step_id: str, dependency_id: str) -> None:
        super().__init__(
            f"Plan validation failed: Step '{step_id}' depends on non-existent step "
            f"'{dependency_id}'"
        )
        self.step_id = step_id
        self.dependency_id = dependency_id


class CircularDependencyError(StructuralValidationError):
    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            f"Plan validation failed: Circular dependency detected: {' -> '.join(cycle)}"
        )
        self.cycle = cycle


class PlanDeadlockError(AgentryError):
    """Raised when pending steps remain but none can become ready."""


class BudgetExceededError(AgentryError):
    """
    Raised when a run exceeds ``max_steps`` or ``max_duration_ms``.

    The trace lines produced before the overrun are kept on
    ``partial_results``; they are never returned as an answer.
    """

    def __init__(self, message: str, limit: str, partial_results: list[str] | None = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.partial_results = partial_results or []


class NativeExecutionError(AgentryError):
    """Raised when native tool execution fails; triggers the planned fallback."""


# ============================================================================
# Step-level errors (absorbed by the scheduler)
# ============================================================================


class StepError(AgentryError):
    """Failure confined to a single plan step."""


class ToolNotFoundError(StepError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' not found")
        self.tool_name = tool_name


class ParameterValidationError(StepError):
    def __init__(self, tool_name: str, errors: list[dict[str, Any]]) -> None:
        details = "; ".join(
            f"{e.get('path') or '/'}: {e.get('message')}" for e in errors
        )
        super().__init__(f"Invalid params for tool '{tool_name}': {details}")
        self.tool_name = tool_name
        self.errors = errors


class ToolExecutionError(StepError):
    """Wraps an exception raised by a tool action."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.tool_name = tool_name
        self.cause = cause


__all__ = [
    "AgentryError",
    "BudgetExceededError",
    "CircularDependencyError",
    "DanglingDependencyError",
    "DuplicateStepError",
    "NativeExecutionError",
    "ParameterValidationError",
    "PlanDeadlockError",
    "PlanParseError",
    "StepError",
    "StructuralValidationError",
    "ToolExecutionError",
    "ToolNotFoundError",
]
