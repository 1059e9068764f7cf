"""
agentry.core.retrieval - Retrieval collaborator boundary

The retrieval subsystem (retrievers, vector stores, embedders) lives outside
the execution core. The engine only needs a configuration naming the sources
to query and an augmentor that turns a request into a context-augmented prompt
ending with a ``"User request:"`` section.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

USER_REQUEST_MARKER = "User request:"


class RetrievalConfig(BaseModel):
    """Configuration for retrieval augmentation."""

    sources: list[str] = Field(..., description="Ids of the sources to query")
    max_documents: int = Field(default=10, ge=1, description="Max documents across all sources")
    deduplicate: bool = Field(default=False, description="Drop documents with identical content")
    context_template: str | None = Field(
        default=None, description="Custom template for injecting retrieved context"
    )


@runtime_checkable
class RetrievalAugmentor(Protocol):
    """Builds a prompt that already contains retrieved context."""

    async def augment(
        self, message: str, config: RetrievalConfig, system_prompt: str | None = None
    ) -> str:
        """
        Augment a request with retrieved context.

        Returns:
            Full prompt (system prompt, retrieved context, then
            ``"User request: <message>"``)
        """
        ...
