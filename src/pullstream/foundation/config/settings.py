"""Environment-based configuration using pydantic-settings.

Example:
    >>> from pullstream.foundation.config import get_settings
    >>> get_settings().streams.default_timeout
    1.0

    # Or with environment variables:
    # PULLSTREAM_STREAM_DEFAULT_TIMEOUT=0.5
    # PULLSTREAM_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PULLSTREAM_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = Field(default=None, description="Force ANSI colours on/off; None auto-detects")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class StreamSettings(BaseSettings):
    """Defaults for timing combinators and sources."""

    model_config = SettingsConfigDict(
        env_prefix="PULLSTREAM_STREAM_",
        extra="ignore",
    )

    default_timeout: PositiveFloat = Field(default=1.0, description="timeout_stream deadline in seconds")
    default_throttle: PositiveFloat = Field(default=0.1, description="throttle_stream spacing in seconds")
    default_interval: PositiveFloat = Field(default=1.0, description="interval_stream period in seconds")


class PullstreamSettings(BaseSettings):
    """Root settings, loaded from PULLSTREAM_* variables and an optional .env file.

    Example environment variables:
        PULLSTREAM_DEBUG=true
        PULLSTREAM_LOG_FORMAT=json
        PULLSTREAM_STREAM_DEFAULT_THROTTLE=0.25
    """

    model_config = SettingsConfigDict(
        env_prefix="PULLSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    environment: Literal["development", "staging", "production"] = "development"

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    streams: StreamSettings = Field(default_factory=StreamSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> PullstreamSettings:
    """Get the global settings instance (cached)."""
    return PullstreamSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
