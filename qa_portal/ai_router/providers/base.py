"""Provider interface the router dispatches chat calls to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from qa_portal.ai_router.schemas import AIResponse, Message, ModelInfo


class AIProvider(ABC):
    """A chat backend registered with :class:`AIRouter` under ``name``."""

    name: str

    @abstractmethod
    async def chat(self, messages: list[Message], model: str, **kwargs: Any) -> AIResponse:
        """Run one chat completion on *model*.

        Extra keyword arguments (``temperature``, ``max_tokens``,
        ``response_format``) go straight to the backend.

        Raises:
            ProviderError: The backend rejected or failed the call.
        """

    @abstractmethod
    def available_models(self) -> list[ModelInfo]: ...
