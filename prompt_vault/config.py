"""Application configuration: reads from environment variables and Docker Swarm secrets."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


def _read_secret(name: str) -> str | None:
    """Read a Docker Swarm secret from /run/secrets/."""
    secret_path = Path(f"/run/secrets/{name}")
    if secret_path.exists():
        return secret_path.read_text().strip()
    return None


class Settings(BaseSettings):
    """Application settings with env var and secret support."""

    database_url: str = "sqlite:///prompts.db"

    # Embedding service (OpenAI-compatible); empty key means local fallback only
    openai_api_key: str = ""
    embedding_api_url: str = "https://api.openai.com/v1"
    embedding_model: str = "text-embedding-3-small"
    embedding_timeout: float = 10.0
    embedding_dimension: int = 384
    embedding_max_chars: int = 8000
    embedding_max_retries: int = 3
    embedding_batch_delay: float = 1.0

    # Suggestion service (Anthropic Messages API)
    anthropic_api_key: str = ""
    anthropic_api_url: str = "https://api.anthropic.com/v1"
    suggestion_model: str = "claude-sonnet-4-20250514"
    suggestion_timeout: float = 30.0

    # Search
    index_tags: bool = True
    fts_weight: float = 0.6
    semantic_weight: float = 0.4

    port: int = 5001
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Override with Docker Swarm secrets if available
        if secret := _read_secret("openai_api_key"):
            self.openai_api_key = secret
        if secret := _read_secret("anthropic_api_key"):
            self.anthropic_api_key = secret
        if secret := _read_secret("database_url"):
            self.database_url = secret


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
