"""Application configuration and settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "Vault Index API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    api_v1_prefix: str = "/api/v1"

    # Logging
    log_level: str = "INFO"

    # Embedding service (Ollama-compatible)
    ollama_base_url: str = "http://localhost:11434"
    embedding_model: str = "llama2"
    embedding_timeout: float = 30.0  # Per-request upper bound in seconds
    embedding_max_retries: int = 3  # Total attempts per text
    embedding_initial_delay: float = 0.5
    embedding_max_delay: float = 8.0
    embedding_max_concurrency: int = 4
    embedding_cache_size: int = 1024  # 0 disables the cache

    # Qdrant Configuration
    qdrant_url: str | None = None  # Remote server; embedded local mode when unset
    qdrant_api_key: str | None = None
    qdrant_path: str = "./.vault-index"  # ":memory:" for a throwaway index
    qdrant_collection_name: str = "vault-embeddings"
    qdrant_timeout: int = 30  # Timeout in seconds
    qdrant_scroll_batch_size: int = 256

    # Chunking
    chunk_max_tokens: int | None = None  # Secondary split for long paragraphs
    chunk_overlap: int = 0

    # Indexing
    index_max_concurrent_documents: int = 4
    index_queue_size: int = 1000
    worker_shutdown_timeout: int = 30  # Graceful shutdown timeout

    # Document source
    vault_path: str | None = None
    vault_extensions: list[str] = [".md"]

    # Search
    search_default_k: int = 10
    search_min_score: float = 0.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
