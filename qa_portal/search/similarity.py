"""Embedding-based similar-question search.

The query text is embedded once; every candidate is compared with it by
cosine similarity. Candidates use their precomputed embedding when one is
stored, otherwise their ``title + " " + content`` is embedded on the fly.
A candidate whose embedding cannot be obtained scores 0 instead of failing
the whole call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np

from qa_portal.search.errors import DependencyError, ValidationError
from qa_portal.search.highlight import generate_snippet
from qa_portal.search.params import get_search_params
from qa_portal.search.protocols import TextEmbedder
from qa_portal.search.schemas import Question, SimilarQuestion
from qa_portal.search.store import QuestionFilter, QuestionStore

logger = logging.getLogger(__name__)

SIMILAR_FAILURE_MESSAGE = "Failed to find similar questions"


def cosine_similarity(vector1: Sequence[float], vector2: Sequence[float]) -> float:
    """Return the cosine similarity of two equal-length vectors, in [-1, 1].

    Zero-magnitude vectors have similarity 0.

    Raises:
        ValidationError: If the vectors differ in length.
    """
    if len(vector1) != len(vector2):
        raise ValidationError("Vectors must have the same length")

    a = np.asarray(vector1, dtype=np.float64)
    b = np.asarray(vector2, dtype=np.float64)
    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return float(np.clip(np.dot(a, b) / magnitude, -1.0, 1.0))


def question_text(question: Question) -> str:
    """Text embedded for a question."""
    return question.title + " " + question.content


class SimilarityEngine:
    """Find questions whose embeddings are close to a free-text query.

    Args:
        store: Question store to read candidates from.
        embedder: Service producing embedding vectors.
        timeout: Seconds allowed for each embedding call.
        max_concurrency: Default number of candidate embeddings computed
            at once.
        params: Search parameters; defaults to :func:`get_search_params`.
    """

    def __init__(
        self,
        store: QuestionStore,
        embedder: TextEmbedder,
        *,
        timeout: float = 30.0,
        max_concurrency: int = 4,
        params: dict[str, Any] | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._timeout = timeout
        self._max_concurrency = max_concurrency
        self._params = params if params is not None else get_search_params()

    async def find_similar(
        self,
        query_text: str,
        exclude_id: str | None = None,
        limit: int = 5,
        *,
        group_id: str | None = None,
        max_concurrency: int | None = None,
    ) -> list[SimilarQuestion]:
        """Return up to *limit* questions similar to *query_text*.

        1. Embed the query text.
        2. Fetch candidates, minus *exclude_id* (and outside *group_id*).
        3. Score each candidate by cosine similarity, concurrently.
        4. Keep scores at or above the threshold, best first.

        Raises:
            ValidationError: If *query_text* is blank or *limit* is not positive.
            DependencyError: If the query embedding cannot be obtained.
        """
        if not query_text or not query_text.strip():
            raise ValidationError("Query text is required")
        if limit <= 0:
            raise ValidationError("Limit must be positive")

        query_vector = await self._embed_query(query_text)

        candidates = await self._store.query(QuestionFilter(exclude_id=exclude_id, group_id=group_id))
        if not candidates:
            return []

        semaphore = asyncio.Semaphore(max_concurrency or self._max_concurrency)
        scores = await asyncio.gather(
            *(self._score_candidate(question, query_vector, semaphore) for question in candidates)
        )

        threshold = self._params["similarity_threshold"]
        ranked = sorted(
            (
                (similarity, question)
                for similarity, question in zip(scores, candidates, strict=True)
                if similarity >= threshold and question.id != exclude_id
            ),
            key=lambda pair: pair[0],
            reverse=True,
        )[:limit]

        logger.debug(
            "Similar questions: %d candidates, %d above %.2f", len(candidates), len(ranked), threshold
        )
        return [await self._to_similar(question, similarity) for similarity, question in ranked]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _embed(self, text: str) -> list[float]:
        return await asyncio.wait_for(self._embedder.embed_text(text), timeout=self._timeout)

    async def _embed_query(self, query_text: str) -> list[float]:
        try:
            vector = await self._embed(query_text)
        except TimeoutError as exc:
            logger.error("Query embedding timed out after %.1fs", self._timeout)
            raise DependencyError(SIMILAR_FAILURE_MESSAGE) from exc
        except Exception as exc:
            logger.error("Query embedding failed: %s", exc)
            raise DependencyError(SIMILAR_FAILURE_MESSAGE) from exc

        if not vector:
            raise DependencyError(SIMILAR_FAILURE_MESSAGE)
        return vector

    async def _score_candidate(
        self,
        question: Question,
        query_vector: list[float],
        semaphore: asyncio.Semaphore,
    ) -> float:
        async with semaphore:
            try:
                vector = question.embedding
                if not vector or len(vector) != len(query_vector):
                    vector = await self._embed(question_text(question))
                return cosine_similarity(query_vector, vector)
            except Exception as exc:
                logger.warning("Scoring question %s as 0: %r", question.id, exc)
                return 0.0

    async def _to_similar(self, question: Question, similarity: float) -> SimilarQuestion:
        try:
            answers_count = await self._store.count_answers(question.id)
        except Exception:
            logger.warning("Failed to count answers for question %s", question.id, exc_info=True)
            answers_count = 0

        return SimilarQuestion(
            id=question.id,
            title=question.title,
            content=question.content,
            similarity=round(similarity, 4),
            snippet=generate_snippet(question.content, max_length=self._params["snippet_length"]),
            status=question.status,
            answers_count=answers_count,
            created_at=question.created_at,
        )
