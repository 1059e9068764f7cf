"""
agentry.core.tools - Tool definitions and helpers

Architecture:
- base.py: Tool model (schemas + action callable)
- decorator.py: @tool decorator building a Tool from a function signature
- registry.py: ToolRegistry for managing available tools
- safety.py: with_safety() timeout/retry wrapper
- agent_tools.py: sub-agent and handoff tools

Example Usage:
    >>> from agentry.core.tools import Tool, ToolRegistry, tool, get_tool
    >>>
    >>> @tool(description="Resolve a place name to coordinates")
    ... async def geocode(location: str) -> dict:
    ...     return {"latitude": 4.6, "longitude": -74.1}
    >>>
    >>> registry = ToolRegistry([get_tool(geocode)])
"""

from .agent_tools import AgentRegistry, create_agent_tool, create_handoff_tool
from .base import Tool, ToolAction
from .decorator import collect_tools, get_tool, tool
from .registry import ToolRegistry
from .safety import with_safety

__all__ = [
    # Base types
    "Tool",
    "ToolAction",
    # Construction
    "tool",
    "get_tool",
    "collect_tools",
    "with_safety",
    # Registries and agent tools
    "ToolRegistry",
    "AgentRegistry",
    "create_agent_tool",
    "create_handoff_tool",
]
