"""AI Provider implementations."""

from qa_portal.ai_router.providers.base import AIProvider
from qa_portal.ai_router.providers.openai import OpenAIProvider

__all__ = ["AIProvider", "OpenAIProvider"]
