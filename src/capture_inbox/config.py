"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Gemini
    gemini_api_key: str = ""
    classify_timeout_seconds: float = 20.0

    # Local cache
    local_cache_path: str = "data/captures.json"

    # Remote store (empty URL keeps the inbox local-only)
    remote_store_url: str = ""
    remote_store_token: str = ""
    remote_timeout_seconds: float = 10.0
    sync_quiet_period_seconds: float = 3.0

    # Classification context
    brain_rules: str = ""
    brain_memories: list[str] = []
    high_priority_keywords: list[str] = []
    low_priority_keywords: list[str] = []

    # App
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8080


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()
