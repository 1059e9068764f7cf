"""
agentry.core - Execution core

- execution: planning, validation, reference resolution, native/planned engine
- tools: tool definitions and helpers
- hooks: lifecycle hook registry
- retrieval: retrieval collaborator boundary
"""

__all__: list[str] = []
