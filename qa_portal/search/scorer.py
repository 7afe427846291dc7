"""Heuristic relevance scoring and result ordering.

A question earns a fixed weight for each field that contains the query
(title 0.8, content 0.6, any tag 0.7), clamped to 1.0, plus a 0.2 bonus
when the title equals the query exactly. Weights come from
:mod:`qa_portal.search.params`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal

from qa_portal.search.executor import QueryTerms
from qa_portal.search.schemas import (
    Question,
    QuestionPriority,
    QuestionStatus,
    SearchResult,
    SearchSortField,
)

PRIORITY_ORDER: dict[QuestionPriority, int] = {
    QuestionPriority.high: 3,
    QuestionPriority.medium: 2,
    QuestionPriority.low: 1,
}

STATUS_ORDER: dict[QuestionStatus, int] = {
    QuestionStatus.unanswered: 1,
    QuestionStatus.answered: 2,
    QuestionStatus.resolved: 3,
    QuestionStatus.rejected: 4,
    QuestionStatus.closed: 5,
}


def _contains_any(text: str, terms: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in terms)


def score_question(question: Question, terms: QueryTerms, params: dict[str, Any]) -> float:
    """Return the relevance score of *question* for *terms*, in [0, 1]."""
    candidates = terms.all_terms
    score = 0.0

    if _contains_any(question.title, candidates):
        score += params["title_weight"]
    if _contains_any(question.content, candidates):
        score += params["content_weight"]
    if any(_contains_any(tag, candidates) for tag in question.tags):
        score += params["tag_weight"]
    score = min(score, 1.0)

    if question.title.strip().lower() == terms.phrase:
        score = min(score + params["exact_title_bonus"], 1.0)

    return max(score, 0.0)


def _sort_key(sort_by: SearchSortField):
    if sort_by == SearchSortField.created_at:
        return lambda r: r.question.created_at
    if sort_by == SearchSortField.updated_at:
        return lambda r: r.question.updated_at
    if sort_by == SearchSortField.priority:
        return lambda r: PRIORITY_ORDER[r.question.priority]
    if sort_by == SearchSortField.status:
        return lambda r: STATUS_ORDER[r.question.status]
    return lambda r: r.score


def sort_results(
    results: list[SearchResult],
    sort_by: SearchSortField = SearchSortField.relevance,
    sort_order: Literal["asc", "desc"] = "desc",
) -> list[SearchResult]:
    """Order *results* by *sort_by*; equal keys keep candidate order."""
    # sorted() stays stable with reverse=True
    return sorted(results, key=_sort_key(sort_by), reverse=sort_order == "desc")
