"""
agentry.memory - Conversational memory boundary

Memory management lives outside the execution core. An Agent only needs to
store what was said and fetch the entries most relevant to a new request.
"""

from datetime import datetime, timezone
from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

MemoryType = Literal["conversation", "tool_result", "fact", "preference"]

NO_MEMORY_CONTEXT = "No relevant context available."


class MemoryEntry(BaseModel):
    """One remembered item."""

    type: MemoryType = "conversation"
    content: str
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class MemoryStore(Protocol):
    """Storage the Agent reads prior context from."""

    def add_memory(
        self, content: str, memory_type: MemoryType = "conversation", importance: float = 0.5
    ) -> None: ...

    def get_relevant_memories(self, query: str, max_count: int = 5) -> list[MemoryEntry]: ...


def format_memory_context(entries: list[MemoryEntry]) -> str:
    """Render entries as ``[type] content`` lines, or the no-context placeholder."""
    if not entries:
        return NO_MEMORY_CONTEXT
    return "\n".join(f"[{entry.type}] {entry.content}" for entry in entries)
