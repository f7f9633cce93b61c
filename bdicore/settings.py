"""
bdicore.settings - Centralized Configuration

Single source of truth for reasoning-core tunables.
Loads from .env files and environment variables using pydantic-settings.

Usage:
    >>> from bdicore.settings import get_settings
    >>> settings = get_settings()
    >>> settings.belief_confidence_floor
    0.3

    >>> # Override per environment
    >>> # BDICORE_TRUSTED_SOURCES='["verified-intel", "internal-feed"]'
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BdiSettings(BaseSettings):
    """Reasoning-core configuration loaded from .env / environment variables.

    All BDICORE_* prefixed env vars are loaded automatically.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BDICORE_",
        extra="ignore",
    )

    # -- Belief admission ------------------------------------------------------
    trusted_sources: list[str] = [
        "verified-intel",
        "authenticated-api",
        "validated-scan",
    ]
    belief_confidence_floor: float = Field(default=0.3, ge=0.0, lt=1.0)
    max_content_depth: int = Field(default=8, ge=1)
    max_content_entries: int = Field(default=512, ge=1)

    # -- Intention formation ---------------------------------------------------
    condition_confidence_floor: float = Field(default=0.5, ge=0.0, lt=1.0)
    replan_on_belief: bool = True

    # -- Confidence tracking ---------------------------------------------------
    confidence_history_weight: float = Field(default=0.8, ge=0.0, le=1.0)
    default_agent_confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    # -- Lifecycle events ------------------------------------------------------
    event_queue_size: int = Field(default=1000, ge=1)

    # -- Validators ------------------------------------------------------------

    @model_validator(mode="after")
    def _strip_trusted_sources(self) -> BdiSettings:
        """Drop blank allow-list entries; an empty entry would trust every source."""
        self.trusted_sources = [s.strip() for s in self.trusted_sources if s.strip()]
        return self

    # -- Helpers ---------------------------------------------------------------

    def is_trusted_source(self, source: str) -> bool:
        """Return True if any allow-list entry occurs in *source*."""
        return any(trusted in source for trusted in self.trusted_sources)


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_settings() -> BdiSettings:
    """Return the cached BdiSettings singleton."""
    return BdiSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
