"""
agentry.core.execution.models - Execution Data Models

Plans, steps, run options and the per-run execution context.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentry.core.retrieval import RetrievalConfig
from agentry.core.tools.base import Tool
from agentry.llm import ModelAdapter


class StepStatus(str, Enum):
    """Lifecycle of a plan step. Terminal states never revert."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PlanStep(BaseModel):
    """
    One tool invocation inside an execution plan.

    Accepts the camelCase keys the planning prompt asks for (``toolName``,
    ``dependsOn``) as well as the snake_case field names.

    Example:
        >>> step = PlanStep.model_validate({
        ...     "id": "s2",
        ...     "toolName": "weather",
        ...     "params": {"lat": "{{s1.latitude}}", "lon": "{{s1.longitude}}"},
        ...     "dependsOn": ["s1"],
        ... })
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1, description="Step id, unique within a plan")
    tool_name: str = Field(..., alias="toolName", description="Name of the tool to invoke")
    params: Any = Field(
        default_factory=dict, description="Raw params; may contain {{stepId[.prop]}} placeholders"
    )
    depends_on: list[str] = Field(
        default_factory=list, alias="dependsOn", description="Ids of steps that must complete first"
    )

    # Execution state
    status: StepStatus = StepStatus.PENDING
    result: Any = Field(default=None, description="Raw tool output, or 'Error: ...' on failure")
    structured_result: Any = Field(
        default=None, description="Parsed result when the tool declares a result schema"
    )

    @field_validator("depends_on", mode="before")
    @classmethod
    def _none_means_no_dependencies(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status is not StepStatus.PENDING

    def complete(self, result: Any, structured_result: Any = None) -> None:
        """Transition pending -> completed."""
        self._ensure_pending()
        self.status = StepStatus.COMPLETED
        self.result = result
        self.structured_result = structured_result

    def fail(self, message: str) -> None:
        """Transition pending -> failed, storing ``"Error: <message>"``."""
        self._ensure_pending()
        self.status = StepStatus.FAILED
        self.result = f"Error: {message}"

    def _ensure_pending(self) -> None:
        if self.status is not StepStatus.PENDING:
            raise RuntimeError(f"Step '{self.id}' is already {self.status.value}")


class StepMetadata(BaseModel):
    """What produced a stored step result."""

    tool_name: str
    result_schema: dict[str, Any] | None = None


class ExecutionPlan(BaseModel):
    """
    Dependency graph of steps plus the results gathered so far.

    ``context`` maps step id to the value later steps can reference. It is
    append-only: a key is written once, when its step completes.
    """

    steps: list[PlanStep] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, StepMetadata] = Field(default_factory=dict)

    def get_step(self, step_id: str) -> PlanStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def pending_steps(self) -> list[PlanStep]:
        return [s for s in self.steps if s.status is StepStatus.PENDING]

    def ready_steps(self) -> list[PlanStep]:
        """Pending steps whose every dependency has completed (the next wave)."""
        status = {s.id: s.status for s in self.steps}
        return [
            s
            for s in self.pending_steps()
            if all(status.get(dep) is StepStatus.COMPLETED for dep in s.depends_on)
        ]

    def record(self, step: PlanStep, value: Any, metadata: StepMetadata) -> None:
        """Store a completed step's value. Each key is written exactly once."""
        if not step.is_terminal:
            raise RuntimeError(f"Step '{step.id}' has not reached a terminal state")
        if step.id in self.context:
            raise RuntimeError(f"Result for step '{step.id}' already recorded")
        self.context[step.id] = value
        self.metadata[step.id] = metadata


class ReferenceResolutionContext(BaseModel):
    """Read-only view of prior step results handed to the reference resolver."""

    model_config = ConfigDict(frozen=True)

    results: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, StepMetadata] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Outcome of validating a value against a JSON schema."""

    is_valid: bool
    errors: list[dict[str, Any]] | None = None


class RunOptions(BaseModel):
    """
    Per-run limits and behaviour switches.

    Attributes:
        max_steps: Ceiling on the number of steps started in one run
        max_duration_ms: Ceiling on wall-clock time for one run
        stop_on_first_tool_error: Abort every not-yet-started step after a failure
        required_output_regex: Pattern the final answer is expected to match
        max_concurrency: How many steps of one wave may run at the same time
    """

    model_config = ConfigDict(populate_by_name=True)

    max_steps: int | None = Field(default=None, ge=1, alias="maxSteps")
    max_duration_ms: int | None = Field(default=None, ge=1, alias="maxDurationMs")
    stop_on_first_tool_error: bool = Field(default=False, alias="stopOnFirstToolError")
    required_output_regex: str | None = Field(default=None, alias="requiredOutputRegex")
    max_concurrency: int = Field(default=1, ge=1, alias="maxConcurrency")

    @field_validator("required_output_regex")
    @classmethod
    def _regex_compiles(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"Invalid required_output_regex: {e}") from e
        return value

    def output_matches(self, output: str) -> bool:
        """True when no pattern is required or ``output`` contains a match."""
        if self.required_output_regex is None:
            return True
        return re.search(self.required_output_regex, output) is not None


class ExecutionContext(BaseModel):
    """Everything one run needs. Built once per request and never mutated."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    message: str
    tools: list[Tool] = Field(default_factory=list)
    memory_context: str = ""
    system_prompt: str = ""
    model: ModelAdapter
    options: RunOptions = Field(default_factory=RunOptions)
    retrieval: RetrievalConfig | None = None
