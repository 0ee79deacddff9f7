"""Application-wide configuration powered by pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # An empty backend URL means "same origin as the page", which resolves to
    # page_origin when running outside a browser.
    backend_url: str = Field(default="", alias="ASSISTANT_BACKEND_URL")
    page_origin: str = Field(default="http://localhost:3001", alias="ASSISTANT_PAGE_ORIGIN")
    model: str = Field(default="sonnet", alias="ASSISTANT_MODEL")
    default_provider: str = Field(default="auto", alias="ASSISTANT_DEFAULT_PROVIDER")

    timeout_seconds: float = Field(default=30.0, gt=0, alias="ASSISTANT_TIMEOUT_SECONDS")
    execute_timeout_seconds: float = Field(
        default=10.0, gt=0, alias="ASSISTANT_EXECUTE_TIMEOUT_SECONDS"
    )

    # The backend tier sits in front of a rate-limited CLI, hence 30 per minute.
    rate_limit_max_requests: int = Field(
        default=30, gt=0, alias="ASSISTANT_RATE_LIMIT_MAX_REQUESTS"
    )
    rate_limit_window_seconds: float = Field(
        default=60.0, gt=0, alias="ASSISTANT_RATE_LIMIT_WINDOW_SECONDS"
    )
    provider_refresh_seconds: float = Field(
        default=30.0, gt=0, alias="ASSISTANT_PROVIDER_REFRESH_SECONDS"
    )

    @property
    def resolved_base_url(self) -> str:
        return self.backend_url or self.page_origin


@lru_cache(1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
