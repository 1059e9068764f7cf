"""
Abstract model adapter interface.

This module defines the contract every model adapter must implement. The
execution core only ever talks to models through it: a text completion used
for planning and humanization, and a native tool-calling run.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from agentry.llm.models import CompletionOptions, ToolExecutionResult

if TYPE_CHECKING:
    from agentry.core.tools.base import Tool


class ModelAdapter(ABC):
    """Abstract base class for model adapters.

    Attributes:
        name: Adapter name for identification (e.g., "claude", "ollama")
        supports_native_tools: Whether the provider SDK can run tools natively
    """

    name: str = "adapter"
    supports_native_tools: bool = False

    def __init__(self, model_id: str | None = None, **kwargs: Any) -> None:
        self.model_id = model_id
        self.kwargs = kwargs

    @abstractmethod
    async def complete(self, prompt: str, options: CompletionOptions | None = None) -> str:
        """
        Complete a prompt.

        Args:
            prompt: Full prompt text
            options: Optional JSON-mode / schema hints

        Returns:
            Completion text. May itself be machine-parseable (JSON, possibly fenced).
        """

    @abstractmethod
    async def execute_with_tools(
        self, prompt: str, tools: Sequence["Tool"]
    ) -> ToolExecutionResult:
        """
        Run the provider's native tool-calling loop.

        Args:
            prompt: Full prompt text
            tools: Tools the model may call

        Returns:
            ToolExecutionResult. ``success=False`` (or raising) makes the
            execution engine fall back to planned execution.
        """

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"supports_native_tools={self.supports_native_tools})"
        )
