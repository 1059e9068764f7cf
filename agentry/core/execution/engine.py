"""
agentry.core.execution.engine - Execution Engine

Chooses between the model's native tool calling and planned execution:

    Start -> AttemptNative (model supports native tools) -> Succeed
                                                          -> FallbackToPlanned
    Start -> PlannedOnly (no native support)
    FallbackToPlanned / PlannedOnly -> Planned -> Humanize -> Succeed
                                                           -> Degrade (raw trace)

Native failure is the only automatic fallback and is never retried. A failed
humanization call degrades to the raw step trace. Anything the planned path
cannot absorb (unparseable plan, structural validation error, exceeded
budget) propagates to the caller.
"""

import logging

from agentry.core.hooks import HookRegistry
from agentry.core.retrieval import USER_REQUEST_MARKER, RetrievalAugmentor, RetrievalConfig
from agentry.llm import ToolExecutionResult
from agentry.memory import NO_MEMORY_CONTEXT

from .errors import NativeExecutionError
from .models import ExecutionContext
from .monitoring import ExecutionMonitor, ExecutionTrace
from .planner import Planner
from .response import ResponseProcessor

_LOG_PREVIEW_CHARS = 100


def _has_memory(memory_context: str) -> bool:
    return bool(memory_context.strip()) and memory_context != NO_MEMORY_CONTEXT


class ExecutionEngine:
    """
    Top-level orchestrator for one request.

    Example:
        >>> engine = ExecutionEngine()
        >>> answer = await engine.execute(
        ...     ExecutionContext(
        ...         message="What's the weather in Bogota?",
        ...         tools=[geocode_tool, weather_tool],
        ...         system_prompt="You are a helpful assistant.",
        ...         model=adapter,
        ...     )
        ... )
    """

    def __init__(
        self,
        planner: Planner | None = None,
        response_processor: ResponseProcessor | None = None,
        retrieval_augmentor: RetrievalAugmentor | None = None,
        hooks: HookRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self.hooks = hooks or HookRegistry(logger=self._logger)
        self.planner = planner or Planner(hooks=self.hooks, logger=self._logger)
        self.response_processor = response_processor or ResponseProcessor(logger=self._logger)
        self.retrieval_augmentor = retrieval_augmentor
        self.monitor = ExecutionMonitor(hooks=self.hooks, logger=self._logger)

    async def execute(self, context: ExecutionContext) -> str:
        """
        Run a request natively when possible, otherwise (or on failure) planned.

        Returns:
            Final answer text

        Raises:
            AgentryError: The planned path failed with no fallback left
        """
        trace = await self.monitor.start(context)
        try:
            if context.model.supports_native_tools:
                try:
                    result = await self._try_native_execution(context, trace)
                except NativeExecutionError as e:
                    await self.monitor.fallback(trace, e)
                    result = await self._execute_planned(context, trace)
            else:
                result = await self._execute_planned(context, trace)
        except Exception as e:
            await self.monitor.failed(trace, e)
            raise

        await self.monitor.complete(trace, result)
        return result

    async def _try_native_execution(self, context: ExecutionContext, trace: ExecutionTrace) -> str:
        """One native tool-calling round; any problem becomes NativeExecutionError."""
        await self.monitor.native_attempt(trace)

        prompt = await self.build_prompt(
            context.message, context.memory_context, context.system_prompt, context.retrieval
        )
        self._logger.debug(
            "Sending prompt to model",
            extra={
                "prompt": prompt[:_LOG_PREVIEW_CHARS],
                "tool_count": len(context.tools),
                "execution_mode": "native",
            },
        )

        try:
            result = await context.model.execute_with_tools(prompt, context.tools)
        except Exception as e:
            raise NativeExecutionError(f"Native execution failed: {e}") from e
        if not isinstance(result, ToolExecutionResult):
            raise NativeExecutionError(
                f"Native execution returned {type(result).__name__}, expected ToolExecutionResult"
            )

        self._logger.debug(
            "Received model response",
            extra={
                "response": result.content[:_LOG_PREVIEW_CHARS],
                "operation": "native_execution",
                "tool_call_count": len(result.tool_calls),
                "success": result.success,
            },
        )

        if not result.success:
            raise NativeExecutionError(
                f"Native execution failed: {', '.join(result.errors or ['unknown error'])}"
            )
        if not context.options.output_matches(result.content):
            raise NativeExecutionError(
                "Native execution output does not match required_output_regex "
                f"{context.options.required_output_regex!r}"
            )

        await self.monitor.native_success(trace, result)
        return result.content

    async def _execute_planned(self, context: ExecutionContext, trace: ExecutionTrace) -> str:
        """Plan, execute, then humanize the trace."""
        await self.monitor.planned_start(trace)
        try:
            raw_result = await self.planner.execute(
                context.message,
                context.tools,
                context.memory_context,
                context.system_prompt,
                context.model,
                context.options,
            )
            result = await self.response_processor.generate_conversational_response(
                context.message, raw_result, context.model, context.system_prompt
            )
        except Exception as e:
            await self.monitor.planned_failure(trace, e)
            raise

        if not context.options.output_matches(result):
            self._logger.warning(
                "Planned execution output does not match required_output_regex",
                extra={
                    "execution_id": trace.execution_id,
                    "pattern": context.options.required_output_regex,
                },
            )

        await self.monitor.planned_success(trace, result)
        return result

    async def build_prompt(
        self,
        message: str,
        memory_context: str,
        system_prompt: str,
        retrieval: RetrievalConfig | None = None,
    ) -> str:
        """
        Assemble the outbound prompt for native execution.

        With retrieval configured, the augmentor builds the prompt and memory
        context is spliced in before the user request marker. Otherwise the
        system prompt, memory context and request are concatenated.
        """
        if retrieval is not None:
            if self.retrieval_augmentor is None:
                self._logger.warning(
                    "Retrieval configured but no retrieval augmentor available; using basic prompt",
                    extra={"sources": retrieval.sources},
                )
            else:
                try:
                    return await self._build_augmented_prompt(
                        message, memory_context, system_prompt, retrieval
                    )
                except Exception as e:
                    self._logger.error(
                        f"Retrieval augmentation failed, falling back to basic prompt: {e}",
                        extra={"sources": retrieval.sources, "error": str(e)},
                    )

        return self.build_basic_prompt(message, memory_context, system_prompt)

    async def _build_augmented_prompt(
        self,
        message: str,
        memory_context: str,
        system_prompt: str,
        retrieval: RetrievalConfig,
    ) -> str:
        self._logger.debug(
            "Applying retrieval augmentation",
            extra={"sources": retrieval.sources, "max_documents": retrieval.max_documents},
        )
        prompt = await self.retrieval_augmentor.augment(message, retrieval, system_prompt)

        if _has_memory(memory_context):
            head, marker, tail = prompt.rpartition(USER_REQUEST_MARKER)
            if marker:
                prompt = f"{head}\nMemory context:\n{memory_context}\n\n{marker}{tail}"
            else:
                self._logger.debug("Augmented prompt has no user request marker; memory not spliced")

        return prompt

    @staticmethod
    def build_basic_prompt(message: str, memory_context: str, system_prompt: str) -> str:
        parts = []
        if system_prompt:
            parts.append(f"{system_prompt}\n\n")
        if _has_memory(memory_context):
            parts.append(f"Relevant context:\n{memory_context}\n\n")
        parts.append(f"{USER_REQUEST_MARKER} {message}")
        return "".join(parts)
