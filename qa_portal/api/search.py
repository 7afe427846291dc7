"""Search API endpoints for the Q&A portal.

Provides:
- ``GET /search`` -- Keyword search with filters, sorting and pagination.
- ``GET /search/similar`` -- Questions similar to a free-text query.
- ``POST /search/auto-tags`` -- AI-generated tags for a draft question.
- ``GET /search/suggestions`` -- Autocomplete and typo corrections.
- ``POST /search/index`` -- Precompute missing question embeddings.

Endpoints translate query parameters into service calls and map failed
results to HTTP status codes: validation -> 400, dependency -> 502,
anything else -> 500.
"""

import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from qa_portal.database import get_db
from qa_portal.search.engine import QuestionSearchService
from qa_portal.search.errors import ErrorKind
from qa_portal.search.indexer import QuestionIndexer
from qa_portal.search.params import get_search_params
from qa_portal.search.schemas import (
    AutoTagResult,
    QuestionPriority,
    QuestionStatus,
    ResultBase,
    SearchQuery,
    SearchResponse,
    SearchSortField,
    SimilarQuestionsResult,
    SuggestionsResult,
)
from qa_portal.search.store import SqlQuestionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

INVALID_DATE_MESSAGE = "Invalid date filter"

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.validation: 400,
    ErrorKind.dependency: 502,
    ErrorKind.internal: 500,
}


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class AutoTagRequest(BaseModel):
    """Draft question to tag."""

    title: str = ""
    content: str = ""


class IndexStatusResponse(BaseModel):
    indexed: int
    skipped: int
    failed: int


# ---------------------------------------------------------------------------
# Dependencies (overridden in tests)
# ---------------------------------------------------------------------------


def get_search_service(
    request: Request,
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> QuestionSearchService:
    """Build a QuestionSearchService over the request's database session."""
    state = request.app.state
    settings = state.settings
    return QuestionSearchService(
        SqlQuestionStore(db),
        state.embedding_service,
        state.auto_tagger,
        timeout=settings.AI_REQUEST_TIMEOUT,
        max_concurrency=settings.SIMILARITY_MAX_CONCURRENCY,
        params=get_search_params(settings),
    )


def get_indexer(
    request: Request,
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> QuestionIndexer:
    return QuestionIndexer(SqlQuestionStore(db), request.app.state.embedding_service)


def _parse_date(date_str: str | None) -> datetime | None:
    """Parse a date string (YYYY-MM-DD or ISO 8601) to datetime, or None.

    Values without an offset are taken as UTC.

    Raises:
        ValueError: *date_str* is not an ISO 8601 date.
    """
    if not date_str:
        return None
    parsed = datetime.fromisoformat(date_str)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _apply_status(response: Response, result: ResultBase) -> None:
    if not result.success:
        response.status_code = _STATUS_BY_KIND.get(result.error_kind or ErrorKind.internal, 500)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=SearchResponse)
async def search(
    response: Response,
    q: str = Query("", max_length=200, description="Search query"),  # noqa: B008
    tags: list[str] | None = Query(None, description="Tag filter (any of)"),  # noqa: B008
    status: QuestionStatus | None = Query(None, description="Status filter"),  # noqa: B008
    priority: QuestionPriority | None = Query(None, description="Priority filter"),  # noqa: B008
    author_id: str | None = Query(None, alias="authorId"),  # noqa: B008
    group_id: str | None = Query(None, alias="groupId"),  # noqa: B008
    date_from: str | None = Query(None, alias="dateFrom", description="Created on or after"),  # noqa: B008
    date_to: str | None = Query(None, alias="dateTo", description="Created on or before"),  # noqa: B008
    page: int = Query(1, ge=1),  # noqa: B008
    limit: int = Query(20, ge=1, le=100),  # noqa: B008
    sort_by: SearchSortField = Query(SearchSortField.relevance, alias="sortBy"),  # noqa: B008
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),  # noqa: B008
    service: QuestionSearchService = Depends(get_search_service),  # noqa: B008
) -> SearchResponse:
    """Search questions by keyword.

    Returns 400 with ``error="Search query is required"`` for a blank query
    and ``error="Invalid date filter"`` for a date that does not parse.
    """
    try:
        created_from, created_to = _parse_date(date_from), _parse_date(date_to)
    except ValueError:
        logger.info("Rejected search with invalid date filter: from=%r to=%r", date_from, date_to)
        response.status_code = 400
        return SearchResponse(success=False, error=INVALID_DATE_MESSAGE, error_kind=ErrorKind.validation)

    query = SearchQuery(
        q=q,
        tags=tags,
        status=status,
        priority=priority,
        author_id=author_id,
        group_id=group_id,
        date_from=created_from,
        date_to=created_to,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await service.search(query)
    _apply_status(response, result)
    return result


@router.get("/similar", response_model=SimilarQuestionsResult)
async def similar_questions(
    response: Response,
    q: str = Query("", max_length=10_100, description="Question text"),  # noqa: B008
    exclude_id: str | None = Query(None, alias="excludeId"),  # noqa: B008
    group_id: str | None = Query(None, alias="groupId"),  # noqa: B008
    limit: int = Query(5, ge=1, le=20),  # noqa: B008
    service: QuestionSearchService = Depends(get_search_service),  # noqa: B008
) -> SimilarQuestionsResult:
    """Find questions similar to the given text (similarity >= threshold)."""
    result = await service.find_similar(q, exclude_id=exclude_id, limit=limit, group_id=group_id)
    _apply_status(response, result)
    return result


@router.post("/auto-tags", response_model=AutoTagResult)
async def auto_tags(
    body: AutoTagRequest,
    response: Response,
    service: QuestionSearchService = Depends(get_search_service),  # noqa: B008
) -> AutoTagResult:
    """Generate up to five lowercase tags for a draft question."""
    result = await service.generate_auto_tags(body.title, body.content)
    _apply_status(response, result)
    return result


@router.get("/suggestions", response_model=SuggestionsResult)
async def search_suggestions(
    response: Response,
    q: str = Query("", max_length=100, description="Partial query"),  # noqa: B008
    service: QuestionSearchService = Depends(get_search_service),  # noqa: B008
) -> SuggestionsResult:
    """Suggest titles, tags and typo corrections. A blank query yields ``[]``."""
    result = await service.get_search_suggestions(q)
    _apply_status(response, result)
    return result


@router.post("/index", response_model=IndexStatusResponse)
async def index_questions(
    force: bool = Query(False, description="Re-embed questions that already have an embedding"),  # noqa: B008
    indexer: QuestionIndexer = Depends(get_indexer),  # noqa: B008
) -> IndexStatusResponse:
    """Precompute embeddings for questions that do not have one yet."""
    result = await indexer.index_missing(force=force)
    return IndexStatusResponse(indexed=result.indexed, skipped=result.skipped, failed=result.failed)
