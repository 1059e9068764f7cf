"""
agentry.core.tools.decorator - @tool Decorator

Turn async functions into tools with auto-generated JSON schemas.

Example:
    >>> @tool(name="geocode", description="Resolve a place name to coordinates")
    ... async def geocode(location: str) -> dict:
    ...     ...
    >>>
    >>> agent.add_tool(get_tool(geocode))
    >>>
    >>> # Collect all @tool-decorated functions from a module
    >>> tools = collect_tools(my_module)
"""

import inspect
import types
import typing
from collections.abc import Callable
from typing import Any, get_args, get_origin

from .base import Tool

# Attribute name stored on decorated functions
_TOOL_META_ATTR = "_agentry_tool"


def _python_type_to_json_schema(annotation: Any) -> dict[str, Any]:
    """Map a Python type annotation to a JSON schema type descriptor.

    Handles: str, int, float, bool, list, dict, None, Optional, Union,
    and generic forms like list[str], dict[str, Any].
    """
    if annotation is inspect.Parameter.empty or annotation is Any:
        return {"type": "string"}

    origin = get_origin(annotation)
    args = get_args(annotation)

    # X | Y and typing.Optional / typing.Union
    if origin is types.UnionType or origin is typing.Union:
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return _python_type_to_json_schema(non_none[0])
        return {"type": "string"}

    # list[X]
    if origin is list:
        schema: dict[str, Any] = {"type": "array"}
        if args:
            schema["items"] = _python_type_to_json_schema(args[0])
        return schema

    # dict[K, V]
    if origin is dict:
        return {"type": "object"}

    # Plain types
    type_map: dict[type, str] = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
        type(None): "null",
    }

    if isinstance(annotation, type) and annotation in type_map:
        return {"type": type_map[annotation]}

    return {"type": "string"}


def _build_params_schema(func: Callable[..., Any]) -> dict[str, Any]:
    """Build a JSON schema for a function's keyword parameters.

    Returns {"type": "object", "properties": {...}, "required": [...]}.
    """
    sig = inspect.signature(func)
    hints = typing.get_type_hints(func)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for name, param in sig.parameters.items():
        if name == "self":
            continue

        prop = _python_type_to_json_schema(hints.get(name, param.annotation))

        if param.default is inspect.Parameter.empty:
            required.append(name)
        else:
            prop["default"] = param.default

        properties[name] = prop

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }
    if required:
        schema["required"] = required

    return schema


def _keyword_action(func: Callable[..., Any]) -> Callable[[dict[str, Any]], Any]:
    """Adapt ``func(**kwargs)`` to the single-dict tool action signature."""

    async def action(params: dict[str, Any]) -> Any:
        return await func(**params)

    action.__qualname__ = getattr(func, "__qualname__", action.__qualname__)
    return action


def tool(
    name: str | None = None,
    description: str = "",
    category: str | None = None,
    tags: list[str] | None = None,
    result_schema: dict[str, Any] | None = None,
) -> Callable[..., Any]:
    """Decorator that turns an async function into a tool.

    Args:
        name: Tool name (defaults to function name)
        description: Human-readable description (defaults to the docstring)
        category: Optional category for grouping
        tags: Optional tags for discovery
        result_schema: Optional JSON schema for the result

    Returns:
        Decorator that attaches the Tool to the function
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@tool can only decorate async functions, got {func.__name__}")

        tool_name = name or func.__name__
        tool_desc = description or inspect.getdoc(func) or f"Tool: {tool_name}"

        tool_model = Tool(
            name=tool_name,
            description=tool_desc,
            params_schema=_build_params_schema(func),
            result_schema=result_schema,
            action=_keyword_action(func),
            category=category,
            tags=tags or [],
        )

        setattr(func, _TOOL_META_ATTR, tool_model)
        return func

    return decorator


def get_tool(func: Callable[..., Any]) -> Tool | None:
    """Get the Tool built for a @tool-decorated function, or None."""
    return getattr(func, _TOOL_META_ATTR, None)


def collect_tools(module: types.ModuleType) -> list[Tool]:
    """Find all @tool-decorated functions in a module.

    Args:
        module: Python module to scan

    Returns:
        List of Tool models, ordered by attribute name

    Example:
        >>> import my_tools
        >>> for t in collect_tools(my_tools):
        ...     registry.register_tool(t)
    """
    results: list[Tool] = []

    for attr_name in dir(module):
        obj = getattr(module, attr_name, None)
        if callable(obj):
            found = get_tool(obj)
            if found is not None:
                results.append(found)

    return results
