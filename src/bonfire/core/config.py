"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BONFIRE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Servers
    root_uri: str = "https://cf2.bonfire.moe"
    melior_uri: str = "https://api.bonfire.moe"

    # Credentials injected into every request
    bot_token: str | None = None

    # Some requests return different responses depending on this value
    api_version: str = "3.1.0"

    # Access token claims
    token_audience: str = "access"
    token_issuer: str = "bonfire"

    # Transport
    timeout: float = Field(default=30.0, gt=0)
    requests_per_minute: int = Field(default=120, ge=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only JSON and console renderers are available."""
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
