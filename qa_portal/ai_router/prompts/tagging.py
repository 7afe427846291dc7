"""Tag prompt template for auto-tagging questions.

Asks the model for up to 5 lowercase technical tags and a confidence
score, in JSON format.
"""

from __future__ import annotations

from qa_portal.ai_router.schemas import Message

SYSTEM_PROMPT = (
    "You label questions posted to an internal technical Q&A portal.\n\n"
    "You must respond ONLY in the JSON format below. Do not include any other text:\n"
    '{"tags": ["tag1", "tag2", "tag3"], "confidence": 0.95}\n\n'
    "Guidelines:\n"
    "- tags: up to 5 tags naming the technologies, programming languages, "
    "frameworks and concepts the question is about\n"
    "- Tags are lowercase and use common technical terms\n"
    "- confidence: a number between 0 and 1\n"
    "- Never include any text other than JSON"
)

USER_PROMPT_TEMPLATE = (
    "Based on the following question title and content, generate up to 5 relevant technical tags.\n\n"
    "Title: {title}\n"
    "Content: {content}"
)


def build_messages(title: str, content: str) -> list[Message]:
    """Build message list for tag generation.

    Raises:
        ValueError: If title or content is empty or whitespace-only.
    """
    if not title.strip() or not content.strip():
        raise ValueError("title and content must not be empty")

    return [
        Message(role="system", content=SYSTEM_PROMPT),
        Message(role="user", content=USER_PROMPT_TEMPLATE.format(title=title, content=content)),
    ]
