"""
agentry.agent - Agent facade

The surface callers use: register tools, set a system prompt, then ``run``
requests against a model adapter. ``run`` never raises for execution
problems; when every fallback tier is exhausted it returns
``"Execution failed: <reason>"``.

Example:
    >>> agent = Agent(memory=my_memory_store)
    >>> agent.set_prompt("You are a helpful weather assistant.")
    >>> agent.add_tool(geocode_tool)
    >>> agent.add_tool(weather_tool)
    >>> answer = await agent.run("What's the weather in Bogota?", adapter)
"""

import logging

from agentry.core.execution import ExecutionContext, ExecutionEngine, RunOptions
from agentry.core.hooks import HookRegistry
from agentry.core.retrieval import RetrievalAugmentor, RetrievalConfig
from agentry.core.tools import Tool, ToolRegistry
from agentry.llm import ModelAdapter
from agentry.memory import MemoryEntry, MemoryStore, MemoryType, format_memory_context
from agentry.settings import AgentrySettings, get_settings


class Agent:
    """
    An LLM-driven agent with a tool catalog and optional memory.

    Attributes:
        engine: ExecutionEngine that runs each request
        hooks: HookRegistry shared with the engine and planner
    """

    def __init__(
        self,
        memory: MemoryStore | None = None,
        retrieval_augmentor: RetrievalAugmentor | None = None,
        hooks: HookRegistry | None = None,
        logger: logging.Logger | None = None,
        settings: AgentrySettings | None = None,
        engine: ExecutionEngine | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._settings = settings or get_settings()
        self._memory = memory
        self._tools = ToolRegistry(logger=self._logger)
        self._prompt = ""
        self._retrieval_config: RetrievalConfig | None = None
        if engine is not None:
            # An injected engine brings its own registry
            self.engine = engine
            self.hooks = engine.hooks
        else:
            self.hooks = hooks or HookRegistry(logger=self._logger)
            self.engine = ExecutionEngine(
                retrieval_augmentor=retrieval_augmentor, hooks=self.hooks, logger=self._logger
            )

    # -- Configuration ---------------------------------------------------------

    def add_tool(self, tool: Tool) -> None:
        self._tools.register_tool(tool)

    @property
    def tools(self) -> list[Tool]:
        return self._tools.list_tools()

    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt

    @property
    def prompt(self) -> str:
        return self._prompt

    def set_retrieval_config(self, config: RetrievalConfig | None) -> None:
        self._retrieval_config = config

    @property
    def retrieval_config(self) -> RetrievalConfig | None:
        return self._retrieval_config

    # -- Memory ----------------------------------------------------------------

    def remember(
        self, content: str, memory_type: MemoryType = "conversation", importance: float = 0.5
    ) -> None:
        """Store something in memory. A no-op when the agent has no memory."""
        if self._memory is None:
            return
        self._memory.add_memory(content, memory_type, importance)
        self._logger.debug(
            "Memory operation: add",
            extra={"memory_type": memory_type, "importance": importance, "length": len(content)},
        )

    def relevant_memories(self, query: str, max_count: int | None = None) -> list[MemoryEntry]:
        if self._memory is None:
            return []
        count = self._settings.memory_context_size if max_count is None else max_count
        return self._memory.get_relevant_memories(query, count)

    # -- Execution -------------------------------------------------------------

    async def run(
        self, message: str, model: ModelAdapter, options: RunOptions | None = None
    ) -> str:
        """
        Answer a request using the registered tools.

        Args:
            message: User request
            model: Adapter to plan/execute with
            options: Run options (defaults come from settings)

        Returns:
            The answer, the raw step trace when humanization failed, or
            ``"Execution failed: <reason>"``
        """
        self._logger.info(
            "Run started",
            extra={"request": message[:50], "adapter": model.name, "tool_count": len(self._tools)},
        )

        memories = self.relevant_memories(message)
        self.remember(message, "conversation", 0.8)

        try:
            context = ExecutionContext(
                message=message,
                tools=self.tools,
                memory_context=format_memory_context(memories),
                system_prompt=self._prompt,
                model=model,
                options=options or self._settings.build_run_options(),
                retrieval=self._retrieval_config,
            )
            response = await self.engine.execute(context)
        except Exception as e:
            self._logger.error(
                f"Agent execution failed: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__},
            )
            response = f"Execution failed: {e}"

        self.remember(f"Agent response: {response}", "conversation", 0.6)
        self._logger.info("Run ended", extra={"response_length": len(response)})
        return response
