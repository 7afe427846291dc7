"""AI Router - Unified interface for AI providers."""

from qa_portal.ai_router import prompts  # noqa: F401
from qa_portal.ai_router.router import AIRouter

__all__ = ["AIRouter"]
