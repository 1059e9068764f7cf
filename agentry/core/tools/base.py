"""
agentry.core.tools.base - Base Tool Definitions

Core data model for callable tools. A tool is declarative (name, description,
JSON schemas) plus one action callable. The execution core only reads tools;
they are owned by the caller.
"""

import asyncio
import inspect
import json
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Actions may be plain functions or coroutine functions.
ToolAction = Callable[[dict[str, Any]], Any]


class Tool(BaseModel):
    """
    Tool definition for planned and native execution.

    Example:
        >>> async def geocode(params):
        ...     return {"latitude": 4.6, "longitude": -74.1}
        >>> geocode_tool = Tool(
        ...     name="geocode",
        ...     description="Resolve a place name to coordinates",
        ...     params_schema={
        ...         "type": "object",
        ...         "properties": {"location": {"type": "string"}},
        ...         "required": ["location"],
        ...     },
        ...     action=geocode,
        ... )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Identity
    name: str = Field(..., description="Tool name (e.g., 'geocode')")
    description: str = Field(..., description="What this tool does")

    # Interface
    params_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON schema for tool parameters",
    )
    result_schema: dict[str, Any] | None = Field(
        default=None, description="Optional JSON schema describing the tool result"
    )
    action: ToolAction = Field(..., exclude=True, description="Callable run with resolved params")

    # Metadata
    category: str | None = Field(default=None, description="Tool category (e.g., 'weather')")
    tags: list[str] = Field(default_factory=list, description="Tags for discovery")

    async def invoke(self, params: dict[str, Any]) -> Any:
        """
        Run the action.

        Coroutine functions are awaited on the loop. Plain functions run in a
        worker thread, so a run deadline can abandon them and steps of the
        same wave overlap.
        """
        if inspect.iscoroutinefunction(self.action):
            return await self.action(params)

        result = await asyncio.to_thread(self.action, params)
        if inspect.isawaitable(result):
            result = await result
        return result

    def describe(self) -> str:
        """Render the tool for a planning prompt."""
        return (
            f"Tool: {self.name}\n"
            f"Description: {self.description}\n"
            f"Params: {json.dumps(self.params_schema)}"
        )

    def to_function_schema(self) -> dict[str, Any]:
        """Function-calling schema in the shape most provider SDKs accept."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.params_schema,
        }
