"""Question search service.

Ties the query executor, relevance scorer, highlighter, similarity engine,
tag generator and suggestion generator together behind four operations:

- ``search``: keyword search with filters, relevance ranking, highlights
  and pagination.
- ``find_similar``: embedding similarity against existing questions.
- ``generate_auto_tags``: LLM-proposed tags for a draft question.
- ``get_search_suggestions``: autocomplete and typo corrections.

Every operation returns a tagged result object (``success`` / ``error`` /
``error_kind``); errors never propagate past this class. Only
``asyncio.CancelledError`` is re-raised, so a cancelled call never
presents partial results as complete.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from qa_portal.search.errors import DependencyError, ErrorKind, SearchError, ValidationError
from qa_portal.search.executor import QueryExecutor
from qa_portal.search.highlight import generate_highlights, generate_snippet, primary_term
from qa_portal.search.params import get_search_params
from qa_portal.search.protocols import TagGenerator, TextEmbedder
from qa_portal.search.schemas import (
    AutoTagResult,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SimilarQuestionsResult,
    SuggestionsResult,
)
from qa_portal.search.scorer import score_question, sort_results
from qa_portal.search.similarity import SIMILAR_FAILURE_MESSAGE, SimilarityEngine
from qa_portal.search.store import QuestionStore
from qa_portal.search.suggestions import SuggestionGenerator, typo_corrections

logger = logging.getLogger(__name__)

SEARCH_FAILURE_MESSAGE = "Search failed"
TAG_FAILURE_MESSAGE = "Failed to generate tags"
TAG_REQUIRED_MESSAGE = "Title and content are required for tag generation"
SUGGESTION_FAILURE_MESSAGE = "Failed to get suggestions"


class QuestionSearchService:
    """Search, similar-question, auto-tag and suggestion operations.

    Args:
        store: Question store (persistence reader).
        embedder: Embedding service used for similar questions.
        tag_generator: Tag-generation service used for auto tags.
        timeout: Seconds allowed for each embedding or tag-generation call.
        max_concurrency: Default fan-out for candidate embeddings.
        params: Search parameters; defaults to :func:`get_search_params`.
    """

    def __init__(
        self,
        store: QuestionStore,
        embedder: TextEmbedder,
        tag_generator: TagGenerator,
        *,
        timeout: float = 30.0,
        max_concurrency: int = 4,
        params: dict[str, Any] | None = None,
    ) -> None:
        self._params = params if params is not None else get_search_params()
        self._timeout = timeout
        self._executor = QueryExecutor(store)
        self._similarity = SimilarityEngine(
            store,
            embedder,
            timeout=timeout,
            max_concurrency=max_concurrency,
            params=self._params,
        )
        self._suggestions = SuggestionGenerator(store, max_suggestions=self._params["max_suggestions"])
        self._tag_generator = tag_generator

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    async def search(self, query: SearchQuery) -> SearchResponse:
        """Run a keyword search and return one page of ranked results."""
        try:
            terms, candidates = await self._executor.execute(query)
        except ValidationError as exc:
            return SearchResponse(success=False, error=exc.message, error_kind=exc.kind)
        except Exception:
            logger.exception("Error searching questions")
            return SearchResponse(
                success=False, error=SEARCH_FAILURE_MESSAGE, error_kind=ErrorKind.internal
            )

        ranked = sort_results(
            [
                SearchResult(question=question, score=score_question(question, terms, self._params))
                for question in candidates
            ],
            query.sort_by,
            query.sort_order,
        )

        start = (query.page - 1) * query.limit
        snippet_length = self._params["snippet_length"]
        all_terms = terms.all_terms
        page = [
            result.model_copy(
                update={
                    "highlights": generate_highlights(result.question, all_terms, snippet_length),
                    "snippet": generate_snippet(
                        result.question.content,
                        primary_term(result.question.content, all_terms),
                        snippet_length,
                    ),
                }
            )
            for result in ranked[start : start + query.limit]
        ]

        suggestions: list[str] = []
        for term in all_terms:
            for correction in typo_corrections(term):
                if correction not in suggestions:
                    suggestions.append(correction)

        logger.info(
            "Search %r: total=%d, page=%d, limit=%d, sort=%s",
            terms.phrase,
            len(ranked),
            query.page,
            query.limit,
            query.sort_by.value,
        )
        return SearchResponse(
            success=True,
            results=page,
            total=len(ranked),
            page=query.page,
            limit=query.limit,
            query=query.q,
            suggestions=suggestions,
        )

    # ------------------------------------------------------------------
    # find_similar
    # ------------------------------------------------------------------

    async def find_similar(
        self,
        query_text: str,
        exclude_id: str | None = None,
        limit: int | None = None,
        *,
        group_id: str | None = None,
        max_concurrency: int | None = None,
    ) -> SimilarQuestionsResult:
        """Return questions whose embeddings are similar to *query_text*."""
        try:
            questions = await self._similarity.find_similar(
                query_text,
                exclude_id=exclude_id,
                limit=self._params["similar_limit"] if limit is None else limit,
                group_id=group_id,
                max_concurrency=max_concurrency,
            )
        except ValidationError as exc:
            return SimilarQuestionsResult(success=False, error=exc.message, error_kind=exc.kind)
        except DependencyError as exc:
            logger.error("Error finding similar questions: %s", exc.__cause__ or exc)
            return SimilarQuestionsResult(
                success=False, error=SIMILAR_FAILURE_MESSAGE, error_kind=exc.kind
            )
        except Exception:
            logger.exception("Error finding similar questions")
            return SimilarQuestionsResult(
                success=False, error=SIMILAR_FAILURE_MESSAGE, error_kind=ErrorKind.internal
            )

        return SimilarQuestionsResult(success=True, questions=questions)

    # ------------------------------------------------------------------
    # generate_auto_tags
    # ------------------------------------------------------------------

    async def generate_auto_tags(self, title: str, content: str) -> AutoTagResult:
        """Propose at most ``max_tags`` lowercase tags for a question."""
        if not (title or "").strip() or not (content or "").strip():
            return AutoTagResult(
                success=False, error=TAG_REQUIRED_MESSAGE, error_kind=ErrorKind.validation
            )

        try:
            suggestion = await asyncio.wait_for(
                self._tag_generator.generate_tags(title, content), timeout=self._timeout
            )
        except SearchError as exc:
            logger.error("Error generating auto tags: %s", exc.__cause__ or exc)
            return AutoTagResult(success=False, error=TAG_FAILURE_MESSAGE, error_kind=exc.kind)
        except Exception:
            logger.exception("Error generating auto tags")
            return AutoTagResult(
                success=False, error=TAG_FAILURE_MESSAGE, error_kind=ErrorKind.dependency
            )

        tags = list(dict.fromkeys(t.strip().lower() for t in suggestion.tags if t.strip()))
        return AutoTagResult(
            success=True,
            tags=tags[: self._params["max_tags"]],
            confidence=min(max(suggestion.confidence, 0.0), 1.0),
        )

    # ------------------------------------------------------------------
    # get_search_suggestions
    # ------------------------------------------------------------------

    async def get_search_suggestions(self, partial_query: str) -> SuggestionsResult:
        """Suggest titles, tags and typo corrections for *partial_query*."""
        try:
            suggestions = await self._suggestions.suggest(partial_query or "")
        except Exception:
            logger.exception("Error getting search suggestions")
            return SuggestionsResult(
                success=False, error=SUGGESTION_FAILURE_MESSAGE, error_kind=ErrorKind.internal
            )
        return SuggestionsResult(success=True, suggestions=suggestions)
