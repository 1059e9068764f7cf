"""
Shared model-adapter data models.

This module defines the data exchanged with model adapters: completion
options for plain text calls and the result of a native tool-calling run.
"""

from typing import Any

from pydantic import BaseModel, Field


class CompletionOptions(BaseModel):
    """Options for a plain text completion.

    ``json_mode`` asks the adapter for a generic JSON answer and
    ``response_schema`` for JSON matching a schema. Support is provider
    dependent; adapters ignore what they cannot honour.
    """

    json_mode: bool = False
    response_schema: dict[str, Any] | None = None


class ToolCallRecord(BaseModel):
    """One tool call made during native execution."""

    name: str
    arguments: Any = None
    result: Any = None


class ToolExecutionResult(BaseModel):
    """Outcome of ``ModelAdapter.execute_with_tools``."""

    content: str = Field(default="", description="Final response text")
    tool_calls: list[ToolCallRecord] = Field(
        default_factory=list, description="Tools called during execution"
    )
    success: bool = Field(..., description="Whether execution completed successfully")
    errors: list[str] | None = Field(default=None, description="Errors encountered, if any")
