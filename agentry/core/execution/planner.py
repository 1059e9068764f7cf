"""
agentry.core.execution.planner - Planner

Creates an execution plan from a single planning call, then runs it wave by
wave: every pending step whose dependencies have completed forms the next
wave. Steps fail in isolation (unknown tool, invalid params, raising action)
while their siblings keep running.
"""

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from agentry.core.hooks import (
    HOOK_PLAN_CREATED,
    HOOK_STEP_COMPLETE,
    HOOK_STEP_FAILED,
    HOOK_STEP_START,
    HookRegistry,
)
from agentry.core.tools.base import Tool
from agentry.llm import CompletionOptions, ModelAdapter

from .errors import (
    BudgetExceededError,
    ParameterValidationError,
    PlanDeadlockError,
    PlanParseError,
    StepError,
    ToolExecutionError,
    ToolNotFoundError,
)
from .json_parser import parse_json_from_response
from .models import (
    ExecutionPlan,
    PlanStep,
    ReferenceResolutionContext,
    RunOptions,
    StepMetadata,
    StepStatus,
)
from .references import ReferenceResolver
from .validator import PlanValidator

PLAN_FORMAT_INSTRUCTIONS = """Create an execution plan. Respond ONLY with a JSON array of steps:
[
  {
    "id": "step1",
    "toolName": "name",
    "params": {...},
    "dependsOn": []
  },
  {
    "id": "step2",
    "toolName": "name2",
    "params": {"input": "{{step1}}"},
    "dependsOn": ["step1"]
  }
]

Use {{stepId}} in params to reference a previous step result, or {{stepId.property}}
to reference one property of it. Every referenced step must be listed in dependsOn."""

# Step fields the model must not be able to preset
_STATE_KEYS = frozenset({"status", "result", "structured_result", "structuredResult"})

_LOG_PREVIEW_CHARS = 100


def serialize_result(value: Any) -> str:
    """Trace form of a step result: containers as pretty JSON, the rest as text."""
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2)
    if isinstance(value, dict | list):
        return json.dumps(value, indent=2, default=str)
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    return str(value)


def _preview(text: str) -> str:
    return text if len(text) <= _LOG_PREVIEW_CHARS else text[:_LOG_PREVIEW_CHARS] + "..."


@dataclass
class _RunState:
    """Mutable bookkeeping for one execute_plan call."""

    options: RunOptions
    started_at: float = field(default_factory=time.monotonic)
    trace: list[str] = field(default_factory=list)
    steps_started: int = 0
    stopped_after: str | None = None

    def remaining_seconds(self) -> float | None:
        if self.options.max_duration_ms is None:
            return None
        return self.options.max_duration_ms / 1000 - (time.monotonic() - self.started_at)

    def deadline_passed(self) -> bool:
        remaining = self.remaining_seconds()
        return remaining is not None and remaining <= 0

    def check_deadline(self) -> None:
        if self.deadline_passed():
            raise BudgetExceededError(
                f"Run exceeded max_duration_ms={self.options.max_duration_ms}",
                limit="max_duration_ms",
                partial_results=list(self.trace),
            )

    def claim_step(self, step: PlanStep) -> None:
        """Count a step as started, enforcing max_steps and the deadline."""
        max_steps = self.options.max_steps
        if max_steps is not None and self.steps_started >= max_steps:
            raise BudgetExceededError(
                f"Run exceeded max_steps={max_steps} before step '{step.id}'",
                limit="max_steps",
                partial_results=list(self.trace),
            )
        self.check_deadline()
        self.steps_started += 1


class Planner:
    """
    Plans with one model call, then executes the plan.

    Example:
        >>> planner = Planner()
        >>> plan = await planner.create_plan(message, tools, memory_context, system_prompt, model)
        >>> trace = await planner.execute_plan(plan, tools, RunOptions(max_steps=10))
        >>> print(trace)
        s1: {...}
        s2: ...
    """

    def __init__(
        self,
        reference_resolver: ReferenceResolver | None = None,
        plan_validator: PlanValidator | None = None,
        hooks: HookRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self.reference_resolver = reference_resolver or ReferenceResolver(logger=self._logger)
        self.plan_validator = plan_validator or PlanValidator(logger=self._logger)
        self.hooks = hooks or HookRegistry(logger=self._logger)

    # ------------------------------------------------------------------
    # Plan creation
    # ------------------------------------------------------------------

    def build_planning_prompt(
        self,
        message: str,
        tools: Sequence[Tool],
        memory_context: str,
        system_prompt: str,
    ) -> str:
        tool_descriptions = "\n\n".join(t.describe() for t in tools)
        return (
            f"{system_prompt}\n\n"
            f"Context from memory:\n{memory_context}\n\n"
            f"Available Tools:\n{tool_descriptions}\n\n"
            f"Current request: {message}\n\n"
            f"{PLAN_FORMAT_INSTRUCTIONS}"
        )

    async def create_plan(
        self,
        message: str,
        tools: Sequence[Tool],
        memory_context: str,
        system_prompt: str,
        model: ModelAdapter,
    ) -> ExecutionPlan:
        """
        Ask the model for a plan with exactly one completion call.

        Raises:
            PlanParseError: The response holds no usable list of steps
        """
        prompt = self.build_planning_prompt(message, tools, memory_context, system_prompt)
        self._logger.debug(
            "Sending planning prompt to model",
            extra={"prompt": _preview(prompt), "tool_count": len(tools)},
        )

        response = await model.complete(prompt, CompletionOptions(json_mode=True))
        self._logger.debug(
            "Received planning response",
            extra={"response": _preview(response), "operation": "plan_creation"},
        )

        plan = self.parse_plan(response)
        self._logger.info(
            f"Created execution plan with {len(plan.steps)} steps",
            extra={
                "available_tools": [t.name for t in tools],
                "step_ids": [s.id for s in plan.steps],
            },
        )
        await self.hooks.emit(
            HOOK_PLAN_CREATED,
            step_count=len(plan.steps),
            step_ids=[s.id for s in plan.steps],
        )
        return plan

    def parse_plan(self, response: str) -> ExecutionPlan:
        """
        Parse a planning response into a plan with every step pending.

        Accepts a bare array or an object wrapper ``{"steps": [...]}``, with
        or without markdown fences and surrounding prose.
        """
        try:
            data = parse_json_from_response(response)
        except ValueError as e:
            raise PlanParseError(f"Failed to parse execution plan: {response}", response) from e

        if isinstance(data, dict) and isinstance(data.get("steps"), list):
            data = data["steps"]

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise PlanParseError(
                f"Execution plan must be a JSON array of step objects: {response}", response
            )

        try:
            steps = [
                PlanStep.model_validate({k: v for k, v in item.items() if k not in _STATE_KEYS})
                for item in data
            ]
        except ValidationError as e:
            raise PlanParseError(f"Invalid step in execution plan: {e}", response) from e

        if not steps:
            self._logger.warning("Planner produced an empty plan")

        return ExecutionPlan(steps=steps)

    # ------------------------------------------------------------------
    # Plan execution
    # ------------------------------------------------------------------

    async def execute_plan(
        self,
        plan: ExecutionPlan,
        tools: Sequence[Tool],
        options: RunOptions | None = None,
    ) -> str:
        """
        Execute every step of a validated plan.

        Args:
            plan: Plan to run; its steps and context are updated in place
            tools: Tool catalog
            options: Budgets, stop-on-error and concurrency settings

        Returns:
            Newline-joined ``"{stepId}: {result}"`` lines in completion order

        Raises:
            StructuralValidationError: Plan rejected before any step ran
            BudgetExceededError: max_steps or max_duration_ms exceeded
            PlanDeadlockError: Pending steps remain but none can run
        """
        self.plan_validator.validate_structure(plan, tools)

        run = _RunState(options=options or RunOptions())
        tools_by_name = {t.name: t for t in tools}

        while True:
            await self._skip_blocked_steps(plan, run)
            if not plan.pending_steps():
                break

            run.check_deadline()

            if run.stopped_after is not None:
                for step in plan.pending_steps():
                    await self._skip_after_stop(step, run)
                break

            ready = plan.ready_steps()
            if not ready:
                raise PlanDeadlockError(
                    "Plan execution deadlocked: pending steps "
                    f"{[s.id for s in plan.pending_steps()]} can never become ready"
                )

            self._logger.debug(
                f"Executing wave of {len(ready)} steps",
                extra={"step_ids": [s.id for s in ready]},
            )
            await self._run_wave(ready, plan, tools_by_name, run)

        return "\n".join(run.trace)

    async def execute(
        self,
        message: str,
        tools: Sequence[Tool],
        memory_context: str,
        system_prompt: str,
        model: ModelAdapter,
        options: RunOptions | None = None,
    ) -> str:
        """Create a plan and execute it; returns the raw step trace."""
        plan = await self.create_plan(message, tools, memory_context, system_prompt, model)
        return await self.execute_plan(plan, tools, options)

    async def _run_wave(
        self,
        wave: list[PlanStep],
        plan: ExecutionPlan,
        tools_by_name: dict[str, Tool],
        run: _RunState,
    ) -> None:
        if run.options.max_concurrency <= 1 or len(wave) == 1:
            for step in wave:
                await self._execute_step(step, plan, tools_by_name, run)
            return

        semaphore = asyncio.Semaphore(run.options.max_concurrency)

        async def _run_with_semaphore(step: PlanStep) -> None:
            async with semaphore:
                await self._execute_step(step, plan, tools_by_name, run)

        results = await asyncio.gather(
            *(_run_with_semaphore(step) for step in wave), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def _execute_step(
        self,
        step: PlanStep,
        plan: ExecutionPlan,
        tools_by_name: dict[str, Tool],
        run: _RunState,
    ) -> None:
        if run.stopped_after is not None:
            await self._skip_after_stop(step, run)
            return

        run.claim_step(step)
        start_time = time.perf_counter()
        await self.hooks.emit(HOOK_STEP_START, step_id=step.id, tool_name=step.tool_name)

        try:
            tool = tools_by_name.get(step.tool_name)
            if tool is None:
                raise ToolNotFoundError(step.tool_name)

            resolution_context = ReferenceResolutionContext(
                results=plan.context, metadata=plan.metadata
            )
            params = self.reference_resolver.resolve_references(
                step.params, resolution_context, tool.params_schema
            )
            self._logger.debug(
                f"Resolved parameters for {step.id}",
                extra={"step_id": step.id, "original": step.params, "resolved": params},
            )

            validation = self.plan_validator.validate_parameters(params, tool.params_schema)
            if not validation.is_valid:
                raise ParameterValidationError(tool.name, validation.errors or [])

            output = await self._invoke(tool, params, run)
        except StepError as e:
            await self._fail_step(step, str(e), run)
            return

        if isinstance(output, BaseModel):
            output = output.model_dump(mode="json")

        structured = self._structure_result(step, tool, output)
        step.complete(output, structured)
        plan.record(
            step,
            structured if structured is not None else output,
            StepMetadata(tool_name=tool.name, result_schema=tool.result_schema),
        )
        run.trace.append(f"{step.id}: {serialize_result(output)}")

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            f"Executed tool: {tool.name}",
            extra={
                "step_id": step.id,
                "tool_name": tool.name,
                "params": sorted(params) if isinstance(params, dict) else params,
                "result": _preview(serialize_result(output)),
                "duration_ms": duration_ms,
            },
        )
        await self.hooks.emit(
            HOOK_STEP_COMPLETE, step_id=step.id, tool_name=tool.name, duration_ms=duration_ms
        )
        run.check_deadline()

    async def _invoke(self, tool: Tool, params: Any, run: _RunState) -> Any:
        """Run a tool action, bounded by whatever time the run has left."""
        remaining = run.remaining_seconds()
        deadline = asyncio.timeout(None if remaining is None else max(remaining, 0))
        try:
            async with deadline:
                return await tool.invoke(params)
        except TimeoutError as e:
            if deadline.expired():
                raise BudgetExceededError(
                    f"Run exceeded max_duration_ms={run.options.max_duration_ms} "
                    f"while running tool '{tool.name}'",
                    limit="max_duration_ms",
                    partial_results=list(run.trace),
                ) from e
            raise ToolExecutionError(tool.name, e) from e
        except Exception as e:
            raise ToolExecutionError(tool.name, e) from e

    def _structure_result(self, step: PlanStep, tool: Tool, output: Any) -> Any:
        """Parsed result for tools that declare a result schema, else None."""
        if tool.result_schema is None:
            return None

        if isinstance(output, str):
            try:
                value = json.loads(output)
            except json.JSONDecodeError:
                return None
        elif isinstance(output, dict | list):
            value = output
        else:
            return None

        validation = self.plan_validator.validate_parameters(value, tool.result_schema)
        if not validation.is_valid:
            # Advisory only: the step still completes
            self._logger.warning(
                f"Result of step {step.id} does not match the result schema of {tool.name}",
                extra={"step_id": step.id, "tool_name": tool.name, "errors": validation.errors},
            )
        return value

    async def _fail_step(self, step: PlanStep, message: str, run: _RunState) -> None:
        step.fail(message)
        run.trace.append(f"{step.id}: {step.result}")
        self._logger.warning(
            f"Step {step.id} failed: {message}",
            extra={"step_id": step.id, "tool_name": step.tool_name},
        )
        if run.options.stop_on_first_tool_error and run.stopped_after is None:
            run.stopped_after = step.id
            self._logger.info(
                f"Stopping execution after failed step {step.id}",
                extra={"step_id": step.id},
            )
        await self.hooks.emit(
            HOOK_STEP_FAILED, step_id=step.id, tool_name=step.tool_name, error=message
        )

    async def _skip(self, step: PlanStep, message: str, run: _RunState) -> None:
        step.fail(message)
        run.trace.append(f"{step.id}: {step.result}")
        self._logger.info(f"Skipped step {step.id}: {message}", extra={"step_id": step.id})
        await self.hooks.emit(
            HOOK_STEP_FAILED, step_id=step.id, tool_name=step.tool_name, error=message
        )

    async def _skip_after_stop(self, step: PlanStep, run: _RunState) -> None:
        await self._skip(
            step, f"Skipped because execution stopped after step '{run.stopped_after}' failed", run
        )

    async def _skip_blocked_steps(self, plan: ExecutionPlan, run: _RunState) -> None:
        """Fail pending steps that depend on a failed step, until none are left."""
        changed = True
        while changed:
            changed = False
            status = {s.id: s.status for s in plan.steps}
            for step in plan.pending_steps():
                failed_dep = next(
                    (dep for dep in step.depends_on if status.get(dep) is StepStatus.FAILED),
                    None,
                )
                if failed_dep is not None:
                    await self._skip(
                        step, f"Skipped because dependency '{failed_dep}' failed", run
                    )
                    status[step.id] = StepStatus.FAILED
                    changed = True
