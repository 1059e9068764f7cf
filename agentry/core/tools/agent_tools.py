"""
agentry.core.tools.agent_tools - Agents as tools

Lets one agent call another: either a fixed sub-agent wrapped as a tool, or a
handoff tool that looks the target up by name in an AgentRegistry.
"""

import logging
from typing import TYPE_CHECKING, Any

from .base import Tool

if TYPE_CHECKING:
    from agentry.agent import Agent
    from agentry.core.execution.models import RunOptions
    from agentry.llm import ModelAdapter

AGENT_TOOL_PARAMS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "input": {"type": "string", "description": "Input message to pass to the sub-agent"},
    },
    "required": ["input"],
}

HANDOFF_PARAMS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "targetAgent": {
            "type": "string",
            "description": "Name of the agent to hand off to (in registry)",
        },
        "input": {"type": "string", "description": "Input to pass to the target agent"},
    },
    "required": ["targetAgent", "input"],
}


class AgentRegistry:
    """Named agents available for handoff."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._agents: dict[str, "Agent"] = {}
        self._logger = logger or logging.getLogger(__name__)

    def register(self, name: str, agent: "Agent") -> None:
        if name in self._agents and self._agents[name] is not agent:
            raise ValueError(f"Agent '{name}' already registered")
        self._agents[name] = agent
        self._logger.info(f"Registered agent: {name}", extra={"agent_name": name})

    def get(self, name: str) -> "Agent | None":
        return self._agents.get(name)

    def names(self) -> list[str]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._agents


def create_agent_tool(
    name: str,
    description: str,
    agent: "Agent",
    model: "ModelAdapter",
    options: "RunOptions | None" = None,
) -> Tool:
    """Expose ``agent`` as a tool taking ``{"input": str}``."""

    async def action(params: dict[str, Any]) -> str:
        return await agent.run(params["input"], model, options)

    return Tool(name=name, description=description, params_schema=AGENT_TOOL_PARAMS, action=action)


def create_handoff_tool(
    registry: AgentRegistry,
    model: "ModelAdapter",
    options: "RunOptions | None" = None,
    logger: logging.Logger | None = None,
) -> Tool:
    """
    Build the ``handoff_to_agent`` tool.

    The target is resolved when the tool runs, so agents registered after the
    tool was built are reachable. An unknown target raises, failing the step.
    """
    log = logger or logging.getLogger(__name__)

    async def action(params: dict[str, Any]) -> str:
        target = registry.get(params["targetAgent"])
        if target is None:
            raise LookupError(f"Target agent '{params['targetAgent']}' not found")
        log.info(
            f"Handing off to agent {params['targetAgent']}",
            extra={"agent_name": params["targetAgent"]},
        )
        return await target.run(params["input"], model, options)

    return Tool(
        name="handoff_to_agent",
        description="Hand off execution to a peer agent registered in the agent registry",
        params_schema=HANDOFF_PARAMS,
        action=action,
    )
