"""
agentry.core.execution.monitoring - Execution lifecycle monitoring

The engine calls an ExecutionMonitor at each transition of the
native/planned decision. The monitor logs a structured event and emits the
matching hook. Per-run state travels in an explicit ExecutionTrace instead of
being stored on the engine, so concurrent runs never share it.

Event vocabulary: execution_start, native_attempt, native_success,
fallback_triggered, planned_execution_start, planned_execution_success,
planned_execution_failed, execution_complete, execution_failed.
"""

import logging
import re
import secrets
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from agentry.core.hooks import (
    HOOK_EXECUTION_COMPLETE,
    HOOK_EXECUTION_FAILED,
    HOOK_EXECUTION_START,
    HOOK_FALLBACK_TRIGGERED,
    HOOK_NATIVE_ATTEMPT,
    HOOK_NATIVE_SUCCESS,
    HOOK_PLANNED_FAILED,
    HOOK_PLANNED_START,
    HOOK_PLANNED_SUCCESS,
    HookRegistry,
)
from agentry.core.tools.base import Tool
from agentry.llm import ToolExecutionResult

from .models import ExecutionContext

Complexity = Literal["simple", "medium", "complex"]
ExecutionMethod = Literal["native", "planned"]

_SEQUENTIAL = re.compile(r"\b(then|after|once|next|step|first|finally)\b", re.IGNORECASE)
_PARALLEL = re.compile(r"\b(and|also|simultaneously|both|each|all)\b", re.IGNORECASE)
_CONDITIONAL = re.compile(r"\b(if|when|depending|based on|condition|varies)\b", re.IGNORECASE)


def assess_complexity(message: str, tools: Sequence[Tool]) -> Complexity:
    """Rough request complexity from length, tool count and wording."""
    score = 0

    if len(message) > 200:
        score += 1
    if len(message) > 500:
        score += 1

    score += max(0, min(len(tools) - 1, 2))

    if _SEQUENTIAL.search(message):
        score += 1
    if _PARALLEL.search(message) and (
        len(message.split(",")) > 2 or len(message.split(" and ")) > 2
    ):
        score += 1
    if _CONDITIONAL.search(message):
        score += 2

    if score <= 1:
        return "simple"
    if score <= 3:
        return "medium"
    return "complex"


def categorize_fallback_reason(error: BaseException) -> str:
    """Bucket a native-execution failure for the fallback_triggered event."""
    message = str(error).lower()

    if "token" in message or "context" in message:
        return "context_limit"
    if "timeout" in message or "time" in message:
        return "timeout"
    if "tool" in message and "not found" in message:
        return "tool_error"
    if "rate" in message or "limit" in message:
        return "rate_limit"
    if "network" in message or "connection" in message:
        return "network_error"

    return "execution_error"


def generate_execution_id() -> str:
    """Unique id such as ``exec_1718000000000_a1b2c3``."""
    return f"exec_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def _elapsed_ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000


@dataclass
class ExecutionTrace:
    """Tracing context for one engine run."""

    execution_id: str
    method: ExecutionMethod
    complexity: Complexity
    started_at: float = field(default_factory=time.perf_counter)
    planned_started_at: float | None = None
    fell_back: bool = False

    @property
    def duration_ms(self) -> float:
        return _elapsed_ms(self.started_at)


class ExecutionMonitor:
    """
    Logs and emits the engine's lifecycle events.

    Example:
        >>> monitor = ExecutionMonitor(hooks=hooks)
        >>> trace = await monitor.start(context)
        >>> await monitor.native_attempt(trace)
    """

    def __init__(self, hooks: HookRegistry | None = None, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(__name__)
        self.hooks = hooks or HookRegistry(logger=self._logger)

    async def start(self, context: ExecutionContext) -> ExecutionTrace:
        trace = ExecutionTrace(
            execution_id=generate_execution_id(),
            method="native" if context.model.supports_native_tools else "planned",
            complexity=assess_complexity(context.message, context.tools),
        )
        self._logger.info(
            "execution_start",
            extra={
                "execution_id": trace.execution_id,
                "method": trace.method,
                "complexity": trace.complexity,
                "request_length": len(context.message),
                "tool_count": len(context.tools),
            },
        )
        await self.hooks.emit(
            HOOK_EXECUTION_START,
            execution_id=trace.execution_id,
            method=trace.method,
            complexity=trace.complexity,
            request_length=len(context.message),
            tool_count=len(context.tools),
        )
        return trace

    async def native_attempt(self, trace: ExecutionTrace) -> None:
        self._logger.info("native_attempt", extra={"execution_id": trace.execution_id})
        await self.hooks.emit(HOOK_NATIVE_ATTEMPT, execution_id=trace.execution_id)

    async def native_success(self, trace: ExecutionTrace, result: ToolExecutionResult) -> None:
        self._logger.info(
            "native_success",
            extra={
                "execution_id": trace.execution_id,
                "tool_calls": len(result.tool_calls),
                "response_length": len(result.content),
            },
        )
        await self.hooks.emit(
            HOOK_NATIVE_SUCCESS,
            execution_id=trace.execution_id,
            tool_calls=len(result.tool_calls),
            response_length=len(result.content),
        )

    async def fallback(self, trace: ExecutionTrace, error: BaseException) -> None:
        trace.fell_back = True
        reason = categorize_fallback_reason(error)
        self._logger.warning(
            "fallback_triggered",
            extra={
                "execution_id": trace.execution_id,
                "from_method": "native",
                "to_method": "planned",
                "reason": reason,
                "error_message": str(error),
            },
        )
        await self.hooks.emit(
            HOOK_FALLBACK_TRIGGERED,
            execution_id=trace.execution_id,
            reason=reason,
            error=str(error),
        )

    async def planned_start(self, trace: ExecutionTrace) -> None:
        trace.planned_started_at = time.perf_counter()
        self._logger.info("planned_execution_start", extra={"execution_id": trace.execution_id})
        await self.hooks.emit(HOOK_PLANNED_START, execution_id=trace.execution_id)

    async def planned_success(self, trace: ExecutionTrace, result: str) -> None:
        duration_ms = _elapsed_ms(trace.planned_started_at or trace.started_at)
        self._logger.info(
            "planned_execution_success",
            extra={
                "execution_id": trace.execution_id,
                "duration_ms": duration_ms,
                "response_length": len(result),
            },
        )
        await self.hooks.emit(
            HOOK_PLANNED_SUCCESS,
            execution_id=trace.execution_id,
            duration_ms=duration_ms,
            response_length=len(result),
        )

    async def planned_failure(self, trace: ExecutionTrace, error: BaseException) -> None:
        duration_ms = _elapsed_ms(trace.planned_started_at or trace.started_at)
        self._logger.error(
            "planned_execution_failed",
            extra={
                "execution_id": trace.execution_id,
                "duration_ms": duration_ms,
                "error_message": str(error),
            },
        )
        await self.hooks.emit(
            HOOK_PLANNED_FAILED,
            execution_id=trace.execution_id,
            duration_ms=duration_ms,
            error=str(error),
        )

    async def complete(self, trace: ExecutionTrace, result: str) -> None:
        self._logger.info(
            "execution_complete",
            extra={
                "execution_id": trace.execution_id,
                "method": trace.method,
                "fell_back": trace.fell_back,
                "duration_ms": trace.duration_ms,
                "response_length": len(result),
            },
        )
        await self.hooks.emit(
            HOOK_EXECUTION_COMPLETE,
            execution_id=trace.execution_id,
            method=trace.method,
            duration_ms=trace.duration_ms,
            response_length=len(result),
        )

    async def failed(self, trace: ExecutionTrace, error: BaseException) -> None:
        self._logger.error(
            "execution_failed",
            extra={
                "execution_id": trace.execution_id,
                "method": trace.method,
                "duration_ms": trace.duration_ms,
                "error_message": str(error),
            },
        )
        await self.hooks.emit(
            HOOK_EXECUTION_FAILED,
            execution_id=trace.execution_id,
            method=trace.method,
            duration_ms=trace.duration_ms,
            error=str(error),
        )
