"""
agentry.llm - Model adapter contract.

Provider adapters (Claude, OpenAI, Ollama, ...) live outside this package.
They implement ``ModelAdapter`` and the execution core consumes them through
two calls only: ``complete`` and ``execute_with_tools``.

Example:
    >>> from agentry.llm import ModelAdapter, ToolExecutionResult
    >>>
    >>> class EchoAdapter(ModelAdapter):
    ...     name = "echo"
    ...     supports_native_tools = False
    ...
    ...     async def complete(self, prompt, options=None):
    ...         return prompt
    ...
    ...     async def execute_with_tools(self, prompt, tools):
    ...         return ToolExecutionResult(content=prompt, success=True)
"""

from agentry.llm.models import CompletionOptions, ToolCallRecord, ToolExecutionResult
from agentry.llm.provider import ModelAdapter

__all__ = [
    "CompletionOptions",
    "ModelAdapter",
    "ToolCallRecord",
    "ToolExecutionResult",
]
