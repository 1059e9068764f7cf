"""
agentry.core.tools.safety - Timeouts and retries for tool actions

Wraps a tool so its action is bounded in time and retried on failure.
Retries use a fixed backoff; the wrapped tool keeps its name and schemas.
"""

import asyncio
import logging
from typing import Any

from .base import Tool


def with_safety(
    tool: Tool,
    timeout_ms: int = 0,
    max_retries: int = 0,
    backoff_ms: int = 0,
    logger: logging.Logger | None = None,
) -> Tool:
    """
    Return a copy of ``tool`` whose action enforces a timeout and retries.

    Args:
        tool: Tool to wrap
        timeout_ms: Per-attempt timeout in milliseconds (0 disables it)
        max_retries: Extra attempts after the first failure
        backoff_ms: Delay between attempts in milliseconds
        logger: Logger for retry messages

    Returns:
        New Tool; the original is left untouched

    Example:
        >>> flaky_search = with_safety(search_tool, timeout_ms=2000, max_retries=2, backoff_ms=250)
    """
    if timeout_ms < 0 or max_retries < 0 or backoff_ms < 0:
        raise ValueError("timeout_ms, max_retries and backoff_ms must be non-negative")

    log = logger or logging.getLogger(__name__)

    async def safe_action(params: dict[str, Any]) -> Any:
        attempt = 0
        while True:
            try:
                if timeout_ms > 0:
                    try:
                        return await asyncio.wait_for(tool.invoke(params), timeout_ms / 1000)
                    except TimeoutError as e:
                        raise TimeoutError(f"Tool timeout after {timeout_ms}ms") from e
                return await tool.invoke(params)
            except Exception as e:
                if attempt >= max_retries:
                    raise
                attempt += 1
                log.info(
                    f"Retrying {tool.name} (attempt {attempt + 1}/{max_retries + 1}): {e}",
                    extra={"tool_name": tool.name, "attempt": attempt + 1},
                )
                if backoff_ms > 0:
                    await asyncio.sleep(backoff_ms / 1000)

    return tool.model_copy(update={"action": safe_action})
