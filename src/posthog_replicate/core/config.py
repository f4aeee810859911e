"""Centralized configuration for the PostHog Replicate integration.

This module provides a single source of truth for the integration's tunables,
using pydantic-settings for environment variable loading and validation.

Design Principles:
    - Environment Variables: All settings can be overridden via environment variables
    - Sensible Defaults: Every setting has a default that needs no configuration
    - Validation: Pydantic validates all values at load time
    - Singleton Pattern: Cached settings instance via lru_cache

Environment Variable Prefix:
    - POSTHOG_REPLICATE_*

Usage:
    from posthog_replicate.core.config import settings

    ttl = settings.correlation_ttl_seconds
    if settings.privacy_mode:
        ...
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Integration settings.

    Configuration is loaded from:
        1. Environment variables (``POSTHOG_REPLICATE_`` prefix)
        2. .env file (if present in the working directory)
        3. Default values (if not set)

    Attributes:
        privacy_mode: Default privacy mode for calls that do not pass
            ``posthog_privacy_mode``. Default: False.
        correlation_max_size: Maximum number of prediction ids remembered
            between create and get. Range: [1, 1_000_000]. Default: 10,000.
        correlation_ttl_seconds: Seconds a remembered prediction id is kept
            before it expires. Range: [1, 30 days]. Default: 24 hours.
        event_log_path: When set, every emitted event is also appended to
            this file as one JSON line. The mirror is process-wide: the last
            wrapper built with a path decides the file for all wrappers, and
            wrappers built without one leave it unchanged. Default: None.

    Note:
        The correlation bounds have no counterpart in the Replicate SDK; they
        only exist so that predictions created but never fetched to
        completion cannot grow memory without limit.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTHOG_REPLICATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    privacy_mode: bool = Field(
        default=False, description="Exclude input/output from events by default"
    )
    correlation_max_size: int = Field(
        default=10_000, ge=1, le=1_000_000, description="Max remembered prediction ids"
    )
    correlation_ttl_seconds: float = Field(
        default=86_400.0,
        ge=1.0,
        le=30 * 86_400.0,
        description="Remembered prediction id TTL (seconds)",
    )
    event_log_path: Path | None = Field(
        default=None, description="Optional JSON Lines mirror of emitted events"
    )

    @classmethod
    @lru_cache(maxsize=1)
    def get_settings(cls) -> Settings:
        """Get cached settings instance (singleton pattern).

        Returns:
            Cached Settings instance populated from the environment.

        Note:
            Environment variable changes after the first call are not picked
            up. Pass an explicit ``Settings`` to the wrapper instead.
        """
        return cls()


# Global settings instance
settings = Settings.get_settings()

__all__ = ["Settings", "settings"]
