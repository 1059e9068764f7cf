"""
Unit tests for agentry.memory - memory entries and context formatting.
"""

import pytest
from pydantic import ValidationError

from agentry.memory import NO_MEMORY_CONTEXT, MemoryEntry, MemoryStore, format_memory_context
from tests.fakes import InMemoryStore


def test_format_entries():
    entries = [
        MemoryEntry(type="conversation", content="What's the weather?"),
        MemoryEntry(type="preference", content="Uses Celsius"),
    ]

    assert format_memory_context(entries) == (
        "[conversation] What's the weather?\n[preference] Uses Celsius"
    )


def test_format_empty():
    assert format_memory_context([]) == NO_MEMORY_CONTEXT


def test_importance_bounded():
    with pytest.raises(ValidationError):
        MemoryEntry(content="x", importance=1.5)


def test_store_satisfies_protocol():
    assert isinstance(InMemoryStore(), MemoryStore)
