"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration for the framework itself (logging,
process supervision, event dispatch). Per-tool overrides supplied by a host
live in `Configuration`, not here.

Example:
    >>> from ocrdspi.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.process.stop_grace
    2.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # OCRDSPI_PROCESS_STOP_GRACE=5
    # OCRDSPI_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExitPolicy(StrEnum):
    """How a non-zero exit status of the external process maps to a state.

    REPORT surfaces the error text and leaves the terminal state to the rest
    of the invocation. INTERRUPT turns any non-zero exit into `interrupted`.
    """
    REPORT = "report"
    INTERRUPT = "interrupt"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OCRDSPI_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"


class ProcessSettings(BaseSettings):
    """External process supervision defaults."""

    model_config = SettingsConfigDict(
        env_prefix="OCRDSPI_PROCESS_",
        extra="ignore",
    )

    poll_interval: PositiveFloat = Field(default=0.1, description="Seconds between cancellation checks")
    stop_grace: NonNegativeFloat = Field(default=2.0, description="Seconds to wait after stop before kill")
    exit_policy: ExitPolicy = Field(default=ExitPolicy.REPORT, description="Default non-zero exit mapping")


class EventSettings(BaseSettings):
    """Event controller configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OCRDSPI_EVENTS_",
        extra="ignore",
    )

    workers: PositiveInt = Field(default=4, description="Threads delivering job events")


class OcrdSettings(BaseSettings):
    """Root settings for the framework.

    Loads configuration from environment variables with OCRDSPI_ prefix.

    Example environment variables:
        OCRDSPI_DEBUG=true
        OCRDSPI_LOG_FORMAT=json
        OCRDSPI_PROCESS_POLL_INTERVAL=0.25
        OCRDSPI_EVENTS_WORKERS=8
    """

    model_config = SettingsConfigDict(
        env_prefix="OCRDSPI_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    process: ProcessSettings = Field(default_factory=ProcessSettings)
    events: EventSettings = Field(default_factory=EventSettings)

    @computed_field
    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, else the configured level."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> OcrdSettings:
    """Get the global settings instance (cached)."""
    return OcrdSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
