"""Contracts for the search module's external collaborators.

Implementations:

- TextEmbedder: :class:`~qa_portal.search.embeddings.EmbeddingService`
- TagGenerator: :class:`~qa_portal.services.auto_tagger.AutoTagger`

Tests substitute ``AsyncMock`` objects or small fakes with the same shape.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from qa_portal.search.schemas import TagSuggestion


@runtime_checkable
class TextEmbedder(Protocol):
    """Turns text into a fixed-length embedding vector."""

    async def embed_text(self, text: str) -> list[float]:
        ...


@runtime_checkable
class TagGenerator(Protocol):
    """Proposes tags for a question."""

    async def generate_tags(self, title: str, content: str) -> TagSuggestion:
        ...
