"""
agentry - Tool-using LLM agents with planned execution and native fallback

This package provides:
1. An Agent facade that answers requests with a catalog of tools
2. An execution engine that prefers a model's native tool calling and falls
   back to a self-managed, dependency-ordered plan
3. A planner that validates plans (dangling dependencies, cycles), runs them
   wave by wave with per-step failure isolation, and passes typed results
   between steps through {{stepId.property}} references

Example:
    >>> from agentry import Agent, Tool
    >>>
    >>> agent = Agent()
    >>> agent.add_tool(Tool(name="geocode", description="...", params_schema={...}, action=geocode))
    >>> answer = await agent.run("What's the weather in Bogota?", adapter)

Architecture:
    - llm: ModelAdapter contract implemented by provider adapters
    - core.tools: Tool model, @tool decorator, registries, safety wrapper
    - core.execution: resolver, validator, planner, engine, response processor
    - core.hooks: lifecycle hooks for observability
"""

__version__ = "0.1.0"

from agentry.agent import Agent
from agentry.core.execution import (
    ExecutionContext,
    ExecutionEngine,
    ExecutionPlan,
    PlanStep,
    Planner,
    RunOptions,
)
from agentry.core.hooks import HookRegistry
from agentry.core.tools import Tool, ToolRegistry, tool
from agentry.llm import ModelAdapter, ToolExecutionResult
from agentry.settings import AgentrySettings, get_settings

__all__ = [
    "Agent",
    "AgentrySettings",
    "ExecutionContext",
    "ExecutionEngine",
    "ExecutionPlan",
    "HookRegistry",
    "ModelAdapter",
    "PlanStep",
    "Planner",
    "RunOptions",
    "Tool",
    "ToolExecutionResult",
    "ToolRegistry",
    "__version__",
    "get_settings",
    "tool",
]
