"""
agentry.core.tools.registry - Tool Registry

Name-keyed catalog of the tools an agent may use.
"""

import logging
from collections.abc import Iterable

from .base import Tool


class ToolRegistry:
    """
    Registry of available tools.

    Features:
    - Tool registration with duplicate-name detection
    - Lookup by name
    - Filtering by category and tag

    Design: Simple dict-based registry keyed by tool name. Plans and
    native tool calls refer to tools by name only.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register_tool(geocode_tool)
        >>> tool = registry.get_tool("geocode")
        >>> weather_tools = registry.list_tools(category="weather")
    """

    def __init__(
        self, tools: Iterable[Tool] | None = None, logger: logging.Logger | None = None
    ) -> None:
        """Initialize the registry, optionally pre-populated."""
        self._tools: dict[str, Tool] = {}
        self._logger = logger or logging.getLogger(__name__)
        for tool in tools or ():
            self.register_tool(tool)

    def register_tool(self, tool: Tool, replace: bool = False) -> None:
        """
        Register a tool.

        Args:
            tool: Tool definition
            replace: Overwrite an existing tool with the same name

        Raises:
            ValueError: If a different tool with the same name is registered
                and ``replace`` is False
        """
        existing = self._tools.get(tool.name)
        if existing is not None and existing is not tool and not replace:
            raise ValueError(f"Tool with name '{tool.name}' already registered")

        self._tools[tool.name] = tool

        self._logger.info(
            f"Registered tool: {tool.name}",
            extra={"tool_name": tool.name, "category": tool.category},
        )

    def unregister_tool(self, name: str) -> bool:
        """Remove a tool by name. Returns True if it was registered."""
        return self._tools.pop(name, None) is not None

    def get_tool(self, name: str) -> Tool | None:
        """
        Get tool by name.

        Args:
            name: Tool name (e.g., "geocode")

        Returns:
            Tool if found, None otherwise
        """
        return self._tools.get(name)

    def list_tools(self, category: str | None = None, tag: str | None = None) -> list[Tool]:
        """
        List registered tools in registration order, optionally filtered.

        Args:
            category: Filter by category
            tag: Filter by tag

        Returns:
            List of matching tools
        """
        tools = list(self._tools.values())

        if category:
            tools = [t for t in tools if t.category == category]

        if tag:
            tools = [t for t in tools if tag in t.tags]

        return tools

    def clear(self) -> None:
        """Remove every registered tool."""
        self._tools.clear()
        self._logger.info("Tool registry cleared")

    def __len__(self) -> int:
        """Return number of registered tools."""
        return len(self._tools)

    def __contains__(self, tool_name: object) -> bool:
        """Check if tool with given name is registered."""
        return tool_name in self._tools

    def __iter__(self):
        return iter(self._tools.values())
