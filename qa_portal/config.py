"""pydantic-settings based application settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Search service settings, read from the environment or a local `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Database ---
    DATABASE_URL: str = "postgresql+asyncpg://qa:qa@db:5432/qa_portal"

    # --- AI Providers ---
    OPENAI_API_KEY: str = ""
    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_API_KEY: str = ""
    AZURE_OPENAI_API_VERSION: str = "2024-10-21"

    # --- Embeddings ---
    EMBEDDING_MODEL: str = "text-embedding-3-large"
    EMBEDDING_DIMENSION: int = 3072
    EMBEDDING_SERVICE_URL: str = ""  # local POST /embed service, overrides OpenAI when set

    # --- Tagging ---
    TAGGING_MODEL: str = "gpt-4o-mini"

    # --- Delegate calls ---
    AI_REQUEST_TIMEOUT: float = 30.0
    SIMILARITY_MAX_CONCURRENCY: int = 4

    # --- Search tuning (merged over DEFAULT_SEARCH_PARAMS) ---
    SEARCH_PARAMS: dict[str, float] = {}

    @property
    def async_database_url(self) -> str:
        """``DATABASE_URL`` with a plain ``postgresql://`` scheme switched to asyncpg."""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def uses_azure(self) -> bool:
        return bool(self.AZURE_OPENAI_ENDPOINT)


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
