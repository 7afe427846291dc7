"""Centralized search parameter management.

All search algorithm parameters (field weights, similarity threshold,
snippet window, result caps) live in one table and can be tuned through
the ``SEARCH_PARAMS`` setting (a JSON object of overrides).

Usage in search components::

    from qa_portal.search.params import get_search_params
    params = get_search_params()
    score = params["title_weight"] if title_matches else 0.0
"""

from __future__ import annotations

import logging
from typing import Any

from qa_portal.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_PARAMS: dict[str, float | int] = {
    # Relevance scoring
    "title_weight": 0.8,
    "content_weight": 0.6,
    "tag_weight": 0.7,
    "exact_title_bonus": 0.2,
    # Snippet window (characters)
    "snippet_length": 200,
    # Similar questions
    "similarity_threshold": 0.7,
    "similar_limit": 5,
    # Auto tags / suggestions
    "max_tags": 5,
    "max_suggestions": 10,
    # Pagination
    "default_page_size": 20,
}


def get_search_params(settings: Settings | None = None) -> dict[str, Any]:
    """Return current search parameters, merging overrides with defaults.

    Unknown override keys are ignored so a typo in ``SEARCH_PARAMS`` cannot
    inject parameters nothing reads.
    """
    if settings is None:
        settings = get_settings()

    merged: dict[str, Any] = {**DEFAULT_SEARCH_PARAMS}
    for key, value in settings.SEARCH_PARAMS.items():
        if key in DEFAULT_SEARCH_PARAMS:
            merged[key] = type(DEFAULT_SEARCH_PARAMS[key])(value)
        else:
            logger.warning("Ignoring unknown search parameter override: %s", key)
    return merged
