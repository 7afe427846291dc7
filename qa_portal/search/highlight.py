"""Search-term highlighting and snippet generation."""

from __future__ import annotations

import re
from collections.abc import Sequence

from qa_portal.search.schemas import Question, SearchHighlight

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"
ELLIPSIS = "..."

_MARKED_SPAN_RE = re.compile(f"({re.escape(MARK_OPEN)}.*?{re.escape(MARK_CLOSE)})", re.DOTALL)


def _term_pattern(term: str) -> re.Pattern[str]:
    # Lookarounds rather than \b so terms such as ".net" or "c++" still anchor
    return re.compile(rf"(?<!\w)({re.escape(term)})(?!\w)", re.IGNORECASE)


def highlight_terms(text: str, terms: Sequence[str]) -> str:
    """Wrap whole-word, case-insensitive matches of *terms* in ``<mark>`` tags.

    Longer terms are applied first so a shorter overlapping term cannot
    split them, and text already inside ``<mark>…</mark>`` is never wrapped
    again. Running the function twice with the same terms is a no-op.
    """
    unique: dict[str, str] = {}
    for term in terms:
        stripped = term.strip()
        if stripped:
            unique.setdefault(stripped.lower(), stripped)

    for term in sorted(unique.values(), key=len, reverse=True):
        pattern = _term_pattern(term)
        parts = _MARKED_SPAN_RE.split(text)
        # split() with a capture group puts marked spans at odd indexes
        text = "".join(
            part if i % 2 else pattern.sub(rf"{MARK_OPEN}\1{MARK_CLOSE}", part)
            for i, part in enumerate(parts)
        )
    return text


def generate_snippet(content: str, term: str | None = None, max_length: int = 200) -> str:
    """Return an excerpt of *content* centred on the first occurrence of *term*.

    The window is ``max_length`` characters long. ``...`` is prepended when
    the window starts after the beginning of *content* and appended when it
    stops before the end. Without a term, or when the term does not occur,
    the head of *content* is returned.
    """
    index = content.lower().find(term.lower()) if term else -1

    if index == -1:
        if len(content) > max_length:
            return content[:max_length] + ELLIPSIS
        return content

    start = max(0, index - max_length // 2)
    end = min(len(content), start + max_length)

    snippet = content[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS
    return snippet


def primary_term(content: str, terms: Sequence[str]) -> str | None:
    """Return the first of *terms* that occurs in *content*, if any."""
    lowered = content.lower()
    for term in terms:
        if term and term.lower() in lowered:
            return term
    return terms[0] if terms else None


def generate_highlights(
    question: Question,
    terms: Sequence[str],
    max_length: int = 200,
) -> list[SearchHighlight]:
    """Build title and content highlights for *question*.

    The content fragment is a highlighted snippet, not the whole body.
    """
    highlights: list[SearchHighlight] = []

    title = question.title.lower()
    title_terms = [t for t in terms if t.lower() in title]
    if title_terms:
        highlights.append(
            SearchHighlight(field="title", fragments=[highlight_terms(question.title, title_terms)])
        )

    content = question.content.lower()
    content_terms = [t for t in terms if t.lower() in content]
    if content_terms:
        snippet = generate_snippet(question.content, primary_term(question.content, terms), max_length)
        highlights.append(
            SearchHighlight(field="content", fragments=[highlight_terms(snippet, content_terms)])
        )

    return highlights
