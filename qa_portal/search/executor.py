"""Query executor: validates a search query and fetches its candidates.

The executor turns a :class:`SearchQuery` into a :class:`QuestionFilter`
and hands it to the question store. Ranking, highlighting and pagination
happen downstream.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from qa_portal.search.errors import ValidationError
from qa_portal.search.schemas import Question, SearchQuery
from qa_portal.search.store import QuestionFilter, QuestionStore

logger = logging.getLogger(__name__)


class QueryTerms(NamedTuple):
    """Normalized form of a free-text query.

    Attributes:
        phrase: The whole query, trimmed and lowercased.
        tokens: Distinct whitespace-separated tokens of ``phrase``.
    """

    phrase: str
    tokens: tuple[str, ...]

    @property
    def all_terms(self) -> list[str]:
        """Phrase followed by tokens, de-duplicated."""
        return list(dict.fromkeys((self.phrase, *self.tokens)))


def parse_terms(text: str) -> QueryTerms:
    """Normalize *text* into a phrase and its tokens.

    Raises:
        ValidationError: If *text* is empty or whitespace-only.
    """
    phrase = (text or "").strip().lower()
    if not phrase:
        raise ValidationError("Search query is required")
    tokens = tuple(dict.fromkeys(phrase.split()))
    return QueryTerms(phrase=phrase, tokens=tokens)


def build_filter(query: SearchQuery, terms: QueryTerms) -> QuestionFilter:
    """Combine the text match with the query's structured filters."""
    return QuestionFilter(
        terms=terms.tokens,
        status=query.status,
        priority=query.priority,
        author_id=query.author_id,
        group_id=query.group_id,
        tags=frozenset(t.strip().lower() for t in query.tags or () if t.strip()),
        date_from=query.date_from,
        date_to=query.date_to,
    )


class QueryExecutor:
    """Fetch the candidate questions for a search query.

    Args:
        store: The question store to read from.
    """

    def __init__(self, store: QuestionStore) -> None:
        self._store = store

    async def execute(self, query: SearchQuery) -> tuple[QueryTerms, list[Question]]:
        """Validate *query* and return its parsed terms and candidates.

        Raises:
            ValidationError: If the query text is empty.
        """
        terms = parse_terms(query.q)
        predicate = build_filter(query, terms)
        candidates = await self._store.query(predicate)
        logger.debug("Query %r matched %d candidates", terms.phrase, len(candidates))
        return terms, candidates
