"""Chat models shared by :class:`AIRouter` and its providers."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One turn of a chat conversation."""

    role: Role
    content: str


class ModelInfo(BaseModel):
    """A chat model, or an Azure deployment, that a provider can serve."""

    id: str
    name: str
    provider: str
    max_tokens: int = Field(description="Context window in tokens")


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class AIRequest(BaseModel):
    """A chat call routed through :class:`~qa_portal.ai_router.router.AIRouter`.

    ``model=None`` picks the first model the router knows about.
    ``json_mode`` asks the provider to answer with a single JSON object.
    """

    messages: list[Message] = Field(min_length=1)
    model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, gt=0)
    json_mode: bool = False


class AIResponse(BaseModel):
    content: str
    model: str
    provider: str
    usage: TokenUsage | None = None
    finish_reason: str = "stop"


class ProviderError(Exception):
    """A provider call failed, or no provider can serve the request.

    ``provider`` is ``"router"`` when resolution itself failed.
    """

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.message = message
        self.status_code = status_code
        detail = f"[{provider}] {message}"
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(detail)
