"""Text embeddings for question similarity.

Questions are embedded with text-embedding-3-large (3072 dimensions) by
default. The vectors are compared with cosine similarity, so any backend
works as long as questions and queries go through the same one.
"""

import logging

import httpx
import tiktoken
from openai import APIError, APITimeoutError, AsyncAzureOpenAI, AsyncOpenAI

from qa_portal.config import Settings

logger = logging.getLogger(__name__)

# text-embedding-3-* input limit
MAX_INPUT_TOKENS = 8191


class EmbeddingError(Exception):
    """The embedding backend failed or answered with something unusable."""


class EmbeddingService:
    """Turns question text into vectors.

    The backend is fixed at construction:

    * ``local_url`` set: ``POST {local_url}/embed`` on a self-hosted service,
      which takes ``{"input": [...], "dimensions": N}`` and answers
      ``{"embeddings": [[...], ...]}``.
    * ``azure_endpoint`` set: Azure OpenAI, ``model`` naming the deployment.
    * otherwise: the public OpenAI API.

    Every failure surfaces as :class:`EmbeddingError`.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = "text-embedding-3-large",
        dimensions: int = 3072,
        *,
        azure_endpoint: str | None = None,
        api_version: str = "2024-10-21",
        local_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._model = model
        self._dimensions = dimensions
        self._timeout = timeout
        self._local_url = local_url.rstrip("/") if local_url else None
        self._encoding: tiktoken.Encoding | None = None
        self._client: AsyncOpenAI | None = None

        if self._local_url:
            logger.info("Embeddings served by local service at %s", self._local_url)
        elif azure_endpoint:
            logger.info("Embeddings served by Azure OpenAI deployment %s", model)
            self._client = AsyncAzureOpenAI(
                api_key=api_key, azure_endpoint=azure_endpoint, api_version=api_version, timeout=timeout
            )
        else:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingService":
        return cls(
            api_key=settings.AZURE_OPENAI_API_KEY if settings.uses_azure else settings.OPENAI_API_KEY,
            model=settings.EMBEDDING_MODEL,
            dimensions=settings.EMBEDDING_DIMENSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT or None,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            local_url=settings.EMBEDDING_SERVICE_URL or None,
            timeout=settings.AI_REQUEST_TIMEOUT,
        )

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed_text(self, text: str) -> list[float]:
        """Embed one text. Blank text yields ``[]`` without a backend call."""
        if not text or not text.strip():
            return []
        vectors = await self._embed([self.truncate(text)])
        return vectors[0]

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch in one backend call, keeping input order."""
        if not texts:
            return []
        return await self._embed([self.truncate(text) for text in texts])

    def truncate(self, text: str, max_tokens: int = MAX_INPUT_TOKENS) -> str:
        """Fit *text* into the model's input limit.

        A token never covers less than one UTF-8 byte, so short inputs skip
        the tokenizer. The local backend is limited by characters.
        """
        if self._local_url:
            return text[:max_tokens]
        if len(text.encode("utf-8")) <= max_tokens:
            return text

        if self._encoding is None:
            self._encoding = tiktoken.encoding_for_model(self._model)
        token_ids = self._encoding.encode(text)
        if len(token_ids) <= max_tokens:
            return text
        logger.debug("Embedding input cut from %d to %d tokens", len(token_ids), max_tokens)
        return self._encoding.decode(token_ids[:max_tokens])

    async def _embed(self, texts: list[str]) -> list[list[float]]:
        if self._local_url:
            return await self._embed_local(texts)
        return await self._embed_openai(texts)

    async def _embed_openai(self, texts: list[str]) -> list[list[float]]:
        try:
            response = await self._client.embeddings.create(input=texts, model=self._model, dimensions=self._dimensions)
        except APITimeoutError as exc:
            logger.error("Embedding request exceeded %.1fs", self._timeout)
            raise EmbeddingError(f"Embedding request timed out: {exc}") from exc
        except APIError as exc:
            logger.error("Embedding request failed: %s", exc)
            raise EmbeddingError(str(exc)) from exc

        if not response.data:
            raise EmbeddingError("Invalid embedding response")
        return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]

    async def _embed_local(self, texts: list[str]) -> list[list[float]]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._local_url}/embed", json={"input": texts, "dimensions": self._dimensions}
                )
                response.raise_for_status()
                vectors = response.json()["embeddings"]
        except httpx.TimeoutException as exc:
            logger.error("Local embedding service exceeded %.1fs", self._timeout)
            raise EmbeddingError(f"Embedding request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.error("Local embedding service failed: %s", exc)
            raise EmbeddingError(str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Local embedding service sent an unreadable body: %s", exc)
            raise EmbeddingError(f"Unexpected response from local embedding service: {exc}") from exc

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Unexpected response from local embedding service: {len(vectors)} vectors for {len(texts)} inputs"
            )
        return vectors
