"""Search suggestions: title/tag autocomplete plus typo corrections."""

from __future__ import annotations

import logging

from qa_portal.search.store import QuestionFilter, QuestionStore

logger = logging.getLogger(__name__)

# Known misspellings -> canonical search terms
TYPO_CORRECTIONS: dict[str, str] = {
    "autentication": "authentication",
    "authintication": "authentication",
    "databse": "database",
    "perfomance": "performance",
    "optmization": "optimization",
    "deployement": "deployment",
    "cors": "CORS",
    "jwt": "JWT",
    "oauth": "OAuth",
}


def typo_corrections(query: str) -> list[str]:
    """Return the canonical spelling of *query*, if it is a known typo."""
    correction = TYPO_CORRECTIONS.get(query.strip().lower())
    return [correction] if correction else []


class SuggestionGenerator:
    """Suggest titles and tags containing a partial query.

    Args:
        store: Question store to scan.
        max_suggestions: Cap on the returned list.
    """

    def __init__(self, store: QuestionStore, max_suggestions: int = 10) -> None:
        self._store = store
        self._max_suggestions = max_suggestions

    async def suggest(self, partial_query: str) -> list[str]:
        """Return suggestions for *partial_query*.

        Matching titles and tags come first, newest question first and
        de-duplicated; typo corrections are appended last.
        """
        needle = partial_query.strip().lower()
        if not needle:
            return []

        questions = await self._store.query(QuestionFilter())

        suggestions: list[str] = []
        for question in questions:
            if needle in question.title.lower() and question.title not in suggestions:
                suggestions.append(question.title)
            for tag in question.tags:
                if needle in tag.lower() and tag not in suggestions:
                    suggestions.append(tag)

        for correction in typo_corrections(needle):
            if correction not in suggestions:
                suggestions.append(correction)

        logger.debug("Suggestions for %r: %d", needle, len(suggestions))
        return suggestions[: self._max_suggestions]
