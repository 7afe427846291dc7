import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("EMBEDDING_SERVICE_URL", "")

from qa_portal.search.schemas import Question  # noqa: E402
from qa_portal.search.store import InMemoryQuestionStore  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


def make_question(
    question_id: str,
    title: str = "Untitled",
    content: str = "",
    *,
    minutes: int = 0,
    **overrides,
) -> Question:
    """Build a Question created *minutes* after BASE_TIME."""
    created = BASE_TIME + timedelta(minutes=minutes)
    fields = {
        "id": question_id,
        "title": title,
        "content": content,
        "group_id": "g1",
        "author_id": "u1",
        "created_at": created,
        "updated_at": created,
    }
    fields.update(overrides)
    return Question(**fields)


@pytest.fixture
def sample_questions() -> list[Question]:
    """A small corpus covering the common search cases."""
    return [
        make_question(
            "q1",
            "Next.js 15でのJWT認証実装について",
            "App Router でミドルウェアを使った認証を試しています。",
            tags=["authentication", "nextjs", "jwt"],
            minutes=1,
        ),
        make_question(
            "q2",
            "React hooks and state",
            "When should I use useState versus useReducer in React?",
            tags=["react", "hooks"],
            priority="high",
            minutes=2,
        ),
        make_question(
            "q3",
            "Database connection pool exhausted",
            "Our PostgreSQL database rejects connections under load.",
            tags=["database", "postgresql"],
            status="resolved",
            priority="low",
            group_id="g2",
            minutes=3,
        ),
        make_question(
            "q4",
            "Docker compose networking",
            "Containers cannot reach each other on the default network.",
            tags=["docker"],
            author_id="u2",
            minutes=4,
        ),
    ]


@pytest.fixture
def memory_store(sample_questions: list[Question]) -> InMemoryQuestionStore:
    return InMemoryQuestionStore(sample_questions, answer_counts={"q1": 2, "q2": 1})


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLite session with all tables created.

    Uses a per-test in-memory engine; StaticPool keeps every connection on
    the same in-memory database.
    """
    from qa_portal.database import Base
    import qa_portal.models  # noqa: F401 - Import to register models with Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app; tests install their own overrides."""
    from qa_portal.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
