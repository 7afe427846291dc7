"""AI prompt templates for Q&A portal features.

- tagging: Auto-generate question tags
"""

from qa_portal.ai_router.prompts import tagging

__all__ = ["tagging"]
