"""Routes chat requests to the provider that serves the requested model.

The portal only needs one backend, OpenAI or Azure OpenAI, which is wired
up from settings at startup::

    router = AIRouter.from_settings(get_settings())
    response = await router.chat(AIRequest(messages=[...], json_mode=True))
"""

from __future__ import annotations

import logging
from typing import Any

from qa_portal.ai_router.providers.base import AIProvider
from qa_portal.ai_router.schemas import AIRequest, AIResponse, ModelInfo, ProviderError
from qa_portal.config import Settings

logger = logging.getLogger(__name__)

_NO_PROVIDER_HINT = "Set OPENAI_API_KEY, or AZURE_OPENAI_ENDPOINT together with AZURE_OPENAI_API_KEY."


class AIRouter:
    """Providers keyed by name, in registration order."""

    def __init__(self, providers: dict[str, AIProvider] | None = None) -> None:
        self._providers: dict[str, AIProvider] = dict(providers or {})

    @classmethod
    def from_settings(cls, settings: Settings) -> AIRouter:
        """Register the OpenAI or Azure OpenAI provider configured in *settings*.

        Azure wins when both are configured. With no credentials the router
        stays empty and every chat call fails with :class:`ProviderError`.
        """
        from qa_portal.ai_router.providers.openai import OpenAIProvider

        if settings.uses_azure and settings.AZURE_OPENAI_API_KEY:
            provider = OpenAIProvider(
                api_key=settings.AZURE_OPENAI_API_KEY,
                azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                deployments=[settings.TAGGING_MODEL],
                timeout=settings.AI_REQUEST_TIMEOUT,
            )
        elif settings.OPENAI_API_KEY:
            provider = OpenAIProvider(api_key=settings.OPENAI_API_KEY, timeout=settings.AI_REQUEST_TIMEOUT)
        else:
            logger.warning("No AI provider configured; auto-tagging is unavailable")
            return cls()
        return cls({provider.name: provider})

    def register_provider(self, name: str, provider: AIProvider) -> None:
        self._providers[name] = provider
        logger.info("Registered AI provider: %s", name)

    def get_provider(self, name: str) -> AIProvider:
        try:
            return self._providers[name]
        except KeyError:
            known = ", ".join(self._providers) or "none"
            raise ProviderError(name, f"Provider '{name}' is not registered (known: {known})") from None

    def available_providers(self) -> list[str]:
        return list(self._providers)

    def all_models(self) -> list[ModelInfo]:
        return [info for provider in self._providers.values() for info in provider.available_models()]

    def resolve_model(self, model: str | None = None) -> tuple[str, AIProvider]:
        """Return ``(model_id, provider)`` for *model*.

        Without *model* the first model of the earliest registered provider
        that has any is chosen.

        Raises:
            ProviderError: Nothing is registered, or no provider serves *model*.
        """
        if not self._providers:
            raise ProviderError("router", f"No AI providers are registered. {_NO_PROVIDER_HINT}")

        catalog = [
            (info.id, provider) for provider in self._providers.values() for info in provider.available_models()
        ]
        if model is None:
            if not catalog:
                raise ProviderError("router", "Registered providers expose no models")
            return catalog[0]

        for model_id, provider in catalog:
            if model_id == model:
                return model_id, provider

        known = ", ".join(model_id for model_id, _ in catalog) or "none"
        raise ProviderError("router", f"Model '{model}' not found. Available models: {known}")

    async def chat(self, request: AIRequest) -> AIResponse:
        """Resolve ``request.model`` and run the chat on its provider.

        Raises:
            ProviderError: Resolution failed or the provider call failed.
        """
        model_id, provider = self.resolve_model(request.model)
        options: dict[str, Any] = {"temperature": request.temperature, "max_tokens": request.max_tokens}
        if request.json_mode:
            options["response_format"] = {"type": "json_object"}

        logger.debug("Chat on %s with %d message(s)", model_id, len(request.messages))
        return await provider.chat(messages=request.messages, model=model_id, **options)
