"""
agentry.settings - Centralized Configuration

Loads defaults from .env files and environment variables using
pydantic-settings. Every field can be set with an ``AGENTRY_`` prefixed
variable, e.g. ``AGENTRY_MAX_STEPS=20``.

Settings hierarchy (highest wins):
    RunOptions passed to Agent.run()
        |
    AgentrySettings  (.env / env vars -- process defaults)

Usage:
    >>> from agentry.settings import get_settings
    >>> settings = get_settings()
    >>> settings.build_run_options()
    RunOptions(max_steps=None, max_duration_ms=None, ...)
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentry.core.execution.models import RunOptions


class AgentrySettings(BaseSettings):
    """Process-wide agentry defaults loaded from .env / environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AGENTRY_",
        extra="ignore",
    )

    # -- Environment -----------------------------------------------------------
    env: str = "development"

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Run defaults ----------------------------------------------------------
    max_steps: int | None = Field(default=None, ge=1)
    max_duration_ms: int | None = Field(default=None, ge=1)
    stop_on_first_tool_error: bool = False
    max_concurrency: int = Field(default=1, ge=1)

    # -- Memory ----------------------------------------------------------------
    memory_context_size: int = Field(default=5, ge=0)

    # -- Validators ------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    # -- Helpers ---------------------------------------------------------------

    def build_run_options(self) -> RunOptions:
        """Build the default RunOptions for a run."""
        return RunOptions(
            max_steps=self.max_steps,
            max_duration_ms=self.max_duration_ms,
            stop_on_first_tool_error=self.stop_on_first_tool_error,
            max_concurrency=self.max_concurrency,
        )

    def configure_logging(self) -> None:
        """Apply ``log_level`` to the ``agentry`` logger hierarchy."""
        logging.getLogger("agentry").setLevel(self.log_level)


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_settings() -> AgentrySettings:
    """Return the cached AgentrySettings singleton."""
    return AgentrySettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
