"""
agentry.core.hooks - Execution Lifecycle Hook Registry

Lightweight hook system for observing a run as it moves through the
native/planned decision, plan creation and step execution. Handlers are
async callables that receive keyword arguments specific to each hook point.
Hook failures are logged but never propagate.

Example:
    >>> hooks = HookRegistry()
    >>> async def on_fallback(execution_id, reason, **kwargs):
    ...     print(f"{execution_id} fell back: {reason}")
    >>> hooks.register(HOOK_FALLBACK_TRIGGERED, on_fallback)
    >>> await hooks.emit(HOOK_FALLBACK_TRIGGERED, execution_id="exec_1", reason="timeout")
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any


# Type alias for hook handlers
HookHandler = Callable[..., Awaitable[None]]

# Well-known hook names (string constants for discoverability).
# Each hook emits specific kwargs:
#
# execution_start:            execution_id, method, complexity, request_length, tool_count
# execution_complete:         execution_id, method, duration_ms, response_length
# execution_failed:           execution_id, method, duration_ms, error
# native_attempt:             execution_id
# native_success:             execution_id, tool_calls, response_length
# fallback_triggered:         execution_id, reason, error
# planned_execution_start:    execution_id
# planned_execution_success:  execution_id, duration_ms, response_length
# planned_execution_failed:   execution_id, duration_ms, error
# plan_created:               step_count, step_ids
# step_start:                 step_id, tool_name
# step_complete:              step_id, tool_name, duration_ms
# step_failed:                step_id, tool_name, error
HOOK_EXECUTION_START = "execution_start"
HOOK_EXECUTION_COMPLETE = "execution_complete"
HOOK_EXECUTION_FAILED = "execution_failed"
HOOK_NATIVE_ATTEMPT = "native_attempt"
HOOK_NATIVE_SUCCESS = "native_success"
HOOK_FALLBACK_TRIGGERED = "fallback_triggered"
HOOK_PLANNED_START = "planned_execution_start"
HOOK_PLANNED_SUCCESS = "planned_execution_success"
HOOK_PLANNED_FAILED = "planned_execution_failed"
HOOK_PLAN_CREATED = "plan_created"
HOOK_STEP_START = "step_start"
HOOK_STEP_COMPLETE = "step_complete"
HOOK_STEP_FAILED = "step_failed"


class HookRegistry:
    """Registry for execution lifecycle hooks.

    Handlers are async callables that receive keyword arguments
    specific to each hook point. Hook failures are logged but
    never propagate to the caller.

    Example:
        >>> hooks = HookRegistry()
        >>> async def on_step(step_id, tool_name, **kwargs):
        ...     print(f"{step_id} -> {tool_name}")
        >>> hooks.register("step_start", on_step)
        >>> await hooks.emit("step_start", step_id="s1", tool_name="geocode")
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._handlers: dict[str, list[HookHandler]] = defaultdict(list)
        self._logger = logger or logging.getLogger(__name__)

    def register(self, event: str, handler: HookHandler) -> None:
        """Register a handler for an event."""
        self._handlers[event].append(handler)

    def unregister(self, event: str, handler: HookHandler) -> bool:
        """Unregister a handler. Returns True if found."""
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
            return True
        return False

    async def emit(self, event: str, **kwargs: Any) -> None:
        """Emit an event, calling all registered handlers.

        Each handler is called with **kwargs. Errors are logged
        but do not propagate or affect other handlers.
        """
        handlers = self._handlers.get(event)
        if not handlers:
            return
        for handler in list(handlers):
            try:
                await handler(**kwargs)
            except Exception:
                handler_name = getattr(handler, "__qualname__", repr(handler))
                self._logger.error(
                    "Hook handler %r failed for event '%s'",
                    handler_name,
                    event,
                    exc_info=True,
                    extra={
                        "hook_event": event,
                        "hook_handler": handler_name,
                    },
                )

    def clear(self, event: str | None = None) -> None:
        """Clear handlers for an event, or all handlers if None."""
        if event is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event, None)

    def has_handlers(self, event: str) -> bool:
        """Check if any handlers are registered for an event."""
        return bool(self._handlers.get(event))
