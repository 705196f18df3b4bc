"""Application-wide settings for the prompt pipeline backend."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Fallback credential for the HTTP layer only; the pipeline always takes an explicit key.
    openrouter_api_key: Optional[str] = Field(default=None, env="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", env="OPENROUTER_BASE_URL"
    )
    openrouter_http_referer: str = Field(
        default="http://localhost:3000", env="OPENROUTER_HTTP_REFERER"
    )
    openrouter_app_title: str = Field(
        default="PromptEnhancer", env="OPENROUTER_APP_TITLE"
    )
    vision_model: str = Field(default="google/gemini-2.5-flash", env="VISION_MODEL")
    prompt_model: str = Field(default="minimax/minimax-m2.5", env="PROMPT_MODEL")
    request_timeout: float = Field(default=90.0, env="REQUEST_TIMEOUT")
    max_reference_images: int = Field(default=5, env="MAX_REFERENCE_IMAGES")
    allowed_prompt_counts: tuple[int, ...] = Field(
        default=(3, 4, 5, 6), env="ALLOWED_PROMPT_COUNTS"
    )
    default_prompt_count: int = Field(default=4, env="DEFAULT_PROMPT_COUNT")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
