"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qa_portal.ai_router.router import AIRouter
from qa_portal.config import get_settings
from qa_portal.database import Base, create_engine_and_session_factory
from qa_portal.search.embeddings import EmbeddingService
from qa_portal.services.auto_tagger import AutoTagger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the long-lived services once and keep them on ``app.state``."""
    from qa_portal import models  # noqa: F401 - Import models to register them with Base

    settings = get_settings()
    engine, session_factory = create_engine_and_session_factory(settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    ai_router = AIRouter.from_settings(settings)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.embedding_service = EmbeddingService.from_settings(settings)
    app.state.auto_tagger = AutoTagger(ai_router, model=settings.TAGGING_MODEL)
    logger.info("Q&A portal search started (providers: %s)", ai_router.available_providers() or "none")

    yield
    # Shutdown: dispose the async engine connection pool
    await engine.dispose()


app = FastAPI(
    title="Q&A Portal Search",
    description="Search, similar questions and auto-tagging for the Q&A portal",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Router includes ---
from qa_portal.api.search import router as search_router  # noqa: E402

app.include_router(search_router, prefix="/api")


@app.get("/api/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}
