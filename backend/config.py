"""
Configuration and settings for the QuickStor backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service and admin CLI.

    Every field reads from ``QUICKSTOR_<FIELD>``; the Gemini key also accepts
    the plain ``GEMINI_API_KEY`` used by the admin panel.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUICKSTOR_",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Flat key/value store
    data_file: str = Field(default="data.json")
    cors_origins: list[str] = Field(default=["*"])

    # OpenAI-compatible proxy
    proxy_timeout_seconds: float = Field(default=120.0)

    # Admin-side persisted configuration (stand-in for browser storage)
    local_config_file: str = Field(default="local_config.json")
    prompts_file: str = Field(default="prompts.json")
    backend_url: str = Field(default="http://localhost:3000/api/data")

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "QUICKSTOR_GEMINI_API_KEY"),
    )

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
