"""Chat provider over the public OpenAI API or an Azure OpenAI resource.

On Azure the model id passed to :meth:`OpenAIProvider.chat` is the
deployment name, and only the configured deployments are advertised.
"""

from __future__ import annotations

from typing import Any

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from qa_portal.ai_router.providers.base import AIProvider
from qa_portal.ai_router.schemas import AIResponse, Message, ModelInfo, ProviderError, TokenUsage

OPENAI = "openai"
AZURE_OPENAI = "azure-openai"

_CONTEXT_WINDOW = 128_000

_OPENAI_MODELS = {
    "gpt-4o-mini": "GPT-4o mini",
    "gpt-4o": "GPT-4o",
    "gpt-4.1-mini": "GPT-4.1 mini",
    "gpt-4.1": "GPT-4.1",
}

# these families take max_completion_tokens in place of max_tokens
_COMPLETION_TOKEN_FAMILIES = ("o1", "o3", "o4", "gpt-5", "gpt-4.1")


class OpenAIProvider(AIProvider):
    """Serves chat completions through the ``openai`` SDK.

    Passing ``azure_endpoint`` switches to :class:`openai.AsyncAzureOpenAI`
    and limits the model list to *deployments*.

    Raises:
        ProviderError: ``api_key`` is empty.
    """

    def __init__(
        self,
        api_key: str,
        *,
        azure_endpoint: str | None = None,
        api_version: str = "2024-10-21",
        deployments: list[str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.name = AZURE_OPENAI if azure_endpoint else OPENAI
        if not api_key:
            raise ProviderError(self.name, "API key is required")

        if azure_endpoint:
            self._client: AsyncOpenAI = AsyncAzureOpenAI(
                api_key=api_key, azure_endpoint=azure_endpoint, api_version=api_version, timeout=timeout
            )
            catalog = {deployment: deployment for deployment in deployments or []}
        else:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)
            catalog = _OPENAI_MODELS
        self._models = [
            ModelInfo(id=model_id, name=label, provider=self.name, max_tokens=_CONTEXT_WINDOW)
            for model_id, label in catalog.items()
        ]

    def available_models(self) -> list[ModelInfo]:
        return list(self._models)

    async def chat(self, messages: list[Message], model: str, **kwargs: Any) -> AIResponse:
        if "max_tokens" in kwargs and model.startswith(_COMPLETION_TOKEN_FAMILIES):
            kwargs["max_completion_tokens"] = kwargs.pop("max_tokens")

        try:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=[message.model_dump() for message in messages],
                **kwargs,
            )
        except openai.APIStatusError as exc:
            raise ProviderError(self.name, str(exc), exc.status_code) from exc
        except openai.APIError as exc:
            raise ProviderError(self.name, str(exc)) from exc

        if not completion.choices:
            raise ProviderError(self.name, "No response content")

        first = completion.choices[0]
        return AIResponse(
            content=first.message.content or "",
            model=completion.model,
            provider=self.name,
            usage=_usage(completion),
            finish_reason=first.finish_reason or "stop",
        )


def _usage(completion: Any) -> TokenUsage | None:
    if completion.usage is None:
        return None
    return TokenUsage(
        prompt_tokens=completion.usage.prompt_tokens,
        completion_tokens=completion.usage.completion_tokens,
        total_tokens=completion.usage.total_tokens,
    )
