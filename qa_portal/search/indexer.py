"""Question indexer for precomputing vector embeddings.

Embeddings are computed when a question is written (or in a backfill
batch) and stored on the question, so similar-question lookups only embed
the query text. Questions without a stored embedding are still embedded
on the fly by the similarity engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from qa_portal.search.embeddings import EmbeddingError, EmbeddingService
from qa_portal.search.schemas import Question
from qa_portal.search.similarity import question_text
from qa_portal.search.store import QuestionFilter, QuestionStore

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    """Aggregated result of a batch indexing operation.

    Attributes:
        indexed: Number of questions successfully indexed.
        skipped: Number of questions skipped (already indexed).
        failed: Number of questions that failed during indexing.
    """

    indexed: int = field(default=0)
    skipped: int = field(default=0)
    failed: int = field(default=0)


class QuestionIndexer:
    """Computes and stores question embeddings.

    Args:
        store: Question store that persists the embeddings.
        embedding_service: Service for generating vector embeddings from text.
    """

    def __init__(self, store: QuestionStore, embedding_service: EmbeddingService) -> None:
        self._store = store
        self._embedding_service = embedding_service

    def needs_indexing(self, question: Question) -> bool:
        """True when *question* has no embedding of the configured dimension."""
        embedding = question.embedding
        return not embedding or len(embedding) != self._embedding_service.dimensions

    async def index_question(self, question: Question) -> bool:
        """Embed a single question and store the vector.

        Returns:
            True if an embedding was stored.

        Raises:
            EmbeddingError: If the embedding API call fails.
        """
        embedding = await self._embedding_service.embed_text(question_text(question))
        if not embedding:
            logger.debug("Question %s has no text to embed", question.id)
            return False
        await self._store.save_embedding(question.id, embedding)
        return True

    async def index_missing(self, batch_size: int = 16, *, force: bool = False) -> IndexResult:
        """Embed every question that lacks a current embedding.

        Texts are sent in batches of *batch_size*; a failed batch is counted
        as failed and the run continues with the next one.
        """
        result = IndexResult()
        questions = await self._store.query(QuestionFilter())

        pending: list[Question] = []
        for question in questions:
            if force or self.needs_indexing(question):
                pending.append(question)
            else:
                result.skipped += 1

        for start in range(0, len(pending), batch_size):
            batch = pending[start : start + batch_size]
            try:
                embeddings = await self._embedding_service.embed_texts([question_text(q) for q in batch])
            except EmbeddingError as exc:
                logger.error("Batch embedding failed for %d questions: %s", len(batch), exc)
                result.failed += len(batch)
                continue

            for question, embedding in zip(batch, embeddings, strict=True):
                await self._store.save_embedding(question.id, embedding)
                result.indexed += 1

        logger.info(
            "Indexing finished: indexed=%d skipped=%d failed=%d",
            result.indexed,
            result.skipped,
            result.failed,
        )
        return result
