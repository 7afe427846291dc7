"""Question store abstraction used by the search module.

The search components only read questions through :class:`QuestionStore`.
Two implementations ship with the package:

* :class:`InMemoryQuestionStore` -- a list-backed store used by tests and
  local tooling.
* :class:`SqlQuestionStore` -- reads the ``questions``/``answers`` tables
  through an async SQLAlchemy session.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qa_portal.models import AnswerRecord, QuestionRecord
from qa_portal.search.schemas import Question, QuestionPriority, QuestionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuestionFilter:
    """Predicate over questions. Every populated field narrows the match.

    Attributes:
        terms: Lowercased query tokens; each must occur in the title, the
            content or one of the tags.
        tags: Lowercased tag set; a question matches when it carries at
            least one of them.
        date_from: Inclusive lower bound on ``created_at``.
        date_to: Inclusive upper bound on ``created_at``.
        exclude_id: Question id that never matches.
    """

    terms: tuple[str, ...] = ()
    status: QuestionStatus | None = None
    priority: QuestionPriority | None = None
    author_id: str | None = None
    group_id: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    date_from: datetime | None = None
    date_to: datetime | None = None
    exclude_id: str | None = None

    def matches(self, question: Question) -> bool:
        if self.exclude_id is not None and question.id == self.exclude_id:
            return False
        if self.status is not None and question.status != self.status:
            return False
        if self.priority is not None and question.priority != self.priority:
            return False
        if self.author_id is not None and question.author_id != self.author_id:
            return False
        if self.group_id is not None and question.group_id != self.group_id:
            return False
        if self.date_from is not None and question.created_at < self.date_from:
            return False
        if self.date_to is not None and question.created_at > self.date_to:
            return False
        if self.tags and not any(tag.lower() in self.tags for tag in question.tags):
            return False
        return all(self._term_matches(term, question) for term in self.terms)

    @staticmethod
    def _term_matches(term: str, question: Question) -> bool:
        return (
            term in question.title.lower()
            or term in question.content.lower()
            or any(term in tag.lower() for tag in question.tags)
        )


class QuestionStore(ABC):
    """Read access to questions, plus the embedding write used at index time.

    ``query`` returns matches newest first (by ``created_at``).
    """

    @abstractmethod
    async def query(self, predicate: QuestionFilter) -> list[Question]:
        """Return every question matching *predicate*."""
        ...

    @abstractmethod
    async def count_answers(self, question_id: str) -> int:
        ...

    @abstractmethod
    async def save_embedding(self, question_id: str, embedding: list[float]) -> None:
        """Persist a precomputed embedding for *question_id*."""
        ...


class InMemoryQuestionStore(QuestionStore):
    """List-backed question store.

    Args:
        questions: Initial questions.
        answer_counts: Mapping of question id to number of answers.
    """

    def __init__(
        self,
        questions: Iterable[Question] = (),
        answer_counts: dict[str, int] | None = None,
    ) -> None:
        self._questions: dict[str, Question] = {q.id: q for q in questions}
        self._answer_counts = dict(answer_counts or {})

    def add(self, question: Question) -> None:
        self._questions[question.id] = question

    async def query(self, predicate: QuestionFilter) -> list[Question]:
        matched = [q for q in self._questions.values() if predicate.matches(q)]
        return sorted(matched, key=lambda q: q.created_at, reverse=True)

    async def count_answers(self, question_id: str) -> int:
        return self._answer_counts.get(question_id, 0)

    async def save_embedding(self, question_id: str, embedding: list[float]) -> None:
        question = self._questions.get(question_id)
        if question is None:
            raise KeyError(question_id)
        self._questions[question_id] = question.model_copy(update={"embedding": list(embedding)})


class SqlQuestionStore(QuestionStore):
    """Question store backed by the ``questions`` and ``answers`` tables.

    Structured filters (equality, date range, exclusion) run in SQL; the
    text and tag predicates are applied to the fetched rows because tags
    are stored as a JSON array.

    Args:
        session: An async SQLAlchemy session for database queries.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def query(self, predicate: QuestionFilter) -> list[Question]:
        stmt = select(QuestionRecord)

        if predicate.exclude_id is not None:
            stmt = stmt.where(QuestionRecord.id != predicate.exclude_id)
        if predicate.status is not None:
            stmt = stmt.where(QuestionRecord.status == predicate.status.value)
        if predicate.priority is not None:
            stmt = stmt.where(QuestionRecord.priority == predicate.priority.value)
        if predicate.author_id is not None:
            stmt = stmt.where(QuestionRecord.author_id == predicate.author_id)
        if predicate.group_id is not None:
            stmt = stmt.where(QuestionRecord.group_id == predicate.group_id)
        if predicate.date_from is not None:
            stmt = stmt.where(QuestionRecord.created_at >= predicate.date_from)
        if predicate.date_to is not None:
            stmt = stmt.where(QuestionRecord.created_at <= predicate.date_to)

        stmt = stmt.order_by(QuestionRecord.created_at.desc())

        result = await self._session.execute(stmt)
        questions = [Question.model_validate(record) for record in result.scalars().all()]

        # Only the text and tag predicates are left to check on the rows
        residual = QuestionFilter(terms=predicate.terms, tags=predicate.tags)
        matched = [q for q in questions if residual.matches(q)]
        logger.debug("SQL store: %d rows fetched, %d matched", len(questions), len(matched))
        return matched

    async def count_answers(self, question_id: str) -> int:
        stmt = select(func.count()).select_from(AnswerRecord).where(AnswerRecord.question_id == question_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def save_embedding(self, question_id: str, embedding: list[float]) -> None:
        stmt = update(QuestionRecord).where(QuestionRecord.id == question_id).values(embedding=list(embedding))
        await self._session.execute(stmt)
        await self._session.flush()
