"""
agentry.core.execution - Task execution subsystem

Architecture (leaf first):
- references.py: ReferenceResolver ({{stepId[.prop]}} substitution + coercion)
- validator.py: PlanValidator (dangling deps, cycles, parameter schemas)
- planner.py: Planner (plan creation + wave scheduler)
- response.py: ResponseProcessor (humanization of the step trace)
- engine.py: ExecutionEngine (native vs planned decision and fallback)
- monitoring.py: ExecutionMonitor (lifecycle events)
"""

from .engine import ExecutionEngine
from .errors import (
    AgentryError,
    BudgetExceededError,
    CircularDependencyError,
    DanglingDependencyError,
    DuplicateStepError,
    NativeExecutionError,
    ParameterValidationError,
    PlanDeadlockError,
    PlanParseError,
    StepError,
    StructuralValidationError,
    ToolExecutionError,
    ToolNotFoundError,
)
from .json_parser import contains_json, parse_json_from_response
from .models import (
    ExecutionContext,
    ExecutionPlan,
    PlanStep,
    ReferenceResolutionContext,
    RunOptions,
    StepMetadata,
    StepStatus,
    ValidationResult,
)
from .monitoring import ExecutionMonitor, ExecutionTrace
from .planner import Planner, serialize_result
from .references import (
    ReferenceResolver,
    TemplateReference,
    coerce_type,
    extract_template_references,
)
from .response import ResponseProcessor
from .validator import JsonSchemaValidator, PlanValidator, SchemaValidator

__all__ = [
    # Components
    "ExecutionEngine",
    "ExecutionMonitor",
    "ExecutionTrace",
    "JsonSchemaValidator",
    "PlanValidator",
    "Planner",
    "ReferenceResolver",
    "ResponseProcessor",
    "SchemaValidator",
    # Models
    "ExecutionContext",
    "ExecutionPlan",
    "PlanStep",
    "ReferenceResolutionContext",
    "RunOptions",
    "StepMetadata",
    "StepStatus",
    "TemplateReference",
    "ValidationResult",
    # Helpers
    "coerce_type",
    "contains_json",
    "extract_template_references",
    "parse_json_from_response",
    "serialize_result",
    # Errors
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
