"""Auto-tagging service for generating AI tags on questions.

Uses the tagging prompt and AIRouter to propose up to five lowercase
technical tags plus a confidence score for a question.
"""

from __future__ import annotations

import json
import logging
import re

from qa_portal.ai_router.prompts.tagging import build_messages
from qa_portal.ai_router.router import AIRouter
from qa_portal.ai_router.schemas import AIRequest, ProviderError
from qa_portal.search.errors import DependencyError, ValidationError
from qa_portal.search.schemas import TagSuggestion

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8

_CODE_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*|\s*```$")
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class AutoTagger:
    """Generates AI tags for questions using the tagging prompt.

    Args:
        router: AI router serving the chat model.
        model: Model (or Azure deployment) to use; None lets the router pick.
        max_tags: Upper bound on returned tags.
    """

    def __init__(self, router: AIRouter, model: str | None = None, max_tags: int = 5) -> None:
        self._router = router
        self._model = model
        self._max_tags = max_tags

    async def generate_tags(self, title: str, content: str) -> TagSuggestion:
        """Ask the model for tags describing a question.

        Raises:
            ValidationError: If title or content is blank.
            DependencyError: If the provider fails or answers with
                something other than the expected JSON object.
        """
        try:
            messages = build_messages(title, content)
        except ValueError as exc:
            raise ValidationError("Title and content are required for tag generation") from exc

        request = AIRequest(
            messages=messages,
            model=self._model,
            temperature=0.3,
            max_tokens=200,
            json_mode=True,
        )
        try:
            response = await self._router.chat(request)
        except ProviderError as exc:
            logger.error("Tag generation provider error: %s", exc)
            raise DependencyError("Failed to generate tags") from exc

        return self._parse_tags(response.content, self._max_tags)

    @staticmethod
    def _parse_tags(content: str, max_tags: int = 5) -> TagSuggestion:
        """Extract tags and confidence from the model's JSON answer."""
        text = _CODE_FENCE_RE.sub("", content.strip())
        match = _JSON_OBJECT_RE.search(text)
        try:
            data = json.loads(match.group(0) if match else text)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse tags from AI response: %s", content[:200])
            raise DependencyError("Invalid response format from tag generator") from exc

        if not isinstance(data, dict) or not isinstance(data.get("tags", []), list):
            logger.warning("Unexpected tag response shape: %s", content[:200])
            raise DependencyError("Invalid response format from tag generator")

        tags = [str(t).strip().lower() for t in data.get("tags", []) if str(t).strip()]
        tags = list(dict.fromkeys(tags))[:max_tags]  # preserve order, dedupe

        raw_confidence = data.get("confidence")
        try:
            confidence = DEFAULT_CONFIDENCE if raw_confidence is None else float(raw_confidence)
        except (TypeError, ValueError):
            confidence = DEFAULT_CONFIDENCE

        return TagSuggestion(tags=tags, confidence=min(max(confidence, 0.0), 1.0))
