"""Pydantic v2 schemas for the search module.

Defines the data structures shared by the executor, scorer, similarity
engine and service facade:

- Question: the searchable document
- SearchQuery: free-text query plus structured filters and pagination
- SearchResult / SearchResponse: ranked, highlighted, paginated results
- SimilarQuestion / SimilarQuestionsResult: embedding similarity hits
- TagSuggestion / AutoTagResult: LLM generated tags
- SuggestionsResult: autocomplete and typo-correction suggestions
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from qa_portal.search.errors import ErrorKind


def _utcnow() -> datetime:
    return datetime.now(UTC)


class QuestionStatus(str, Enum):
    """Lifecycle status of a question."""

    unanswered = "unanswered"
    answered = "answered"
    resolved = "resolved"
    rejected = "rejected"
    closed = "closed"


class QuestionPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class SearchSortField(str, Enum):
    """Sortable fields for search results."""

    relevance = "relevance"
    created_at = "createdAt"
    updated_at = "updatedAt"
    priority = "priority"
    status = "status"


class Question(BaseModel):
    """A question posted to a group.

    Attributes:
        id: Immutable identifier.
        title: Question title (at most 100 characters).
        content: Question body (at most 10,000 characters).
        group_id: Owning group.
        author_id: Posting user.
        status: Lifecycle status.
        priority: low, medium or high.
        tags: Ordered free-text tags.
        embedding: Precomputed embedding, when the question has been indexed.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str = Field(max_length=100)
    content: str = Field(max_length=10_000)
    group_id: str
    author_id: str
    status: QuestionStatus = QuestionStatus.unanswered
    priority: QuestionPriority = QuestionPriority.medium
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    resolved_at: datetime | None = None
    embedding: list[float] | None = Field(default=None, exclude=True, repr=False)

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, value: object) -> object:
        return [] if value is None else value


class SearchQuery(BaseModel):
    """Free-text search with optional filters.

    All supplied filters narrow the candidate set (logical AND).
    """

    q: str
    tags: list[str] | None = None
    status: QuestionStatus | None = None
    priority: QuestionPriority | None = None
    author_id: str | None = None
    group_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, gt=0)
    sort_by: SearchSortField = SearchSortField.relevance
    sort_order: Literal["asc", "desc"] = "desc"

    @field_validator("date_from", "date_to")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class SearchHighlight(BaseModel):
    """Marked-up fragments for one field (``title`` or ``content``)."""

    field: str
    fragments: list[str]


class SearchResult(BaseModel):
    question: Question
    score: float = Field(ge=0.0, le=1.0)
    highlights: list[SearchHighlight] = []
    snippet: str = ""


class ResultBase(BaseModel):
    """Tagged result: ``success`` plus an error message and kind on failure."""

    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None


class SearchResponse(ResultBase):
    results: list[SearchResult] = []
    total: int = 0
    page: int = 1
    limit: int = 20
    query: str | None = None
    suggestions: list[str] = []


class SimilarQuestion(BaseModel):
    """Summary of a question similar to the query text."""

    id: str
    title: str
    content: str
    similarity: float = Field(ge=-1.0, le=1.0)
    snippet: str
    status: QuestionStatus
    answers_count: int = 0
    created_at: datetime


class SimilarQuestionsResult(ResultBase):
    questions: list[SimilarQuestion] = []


class TagSuggestion(BaseModel):
    """Raw answer of a tag-generation service."""

    tags: list[str]
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class AutoTagResult(ResultBase):
    tags: list[str] = []
    confidence: float | None = None


class SuggestionsResult(ResultBase):
    suggestions: list[str] = []
