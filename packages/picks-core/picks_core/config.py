"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """The Odds API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ODDS_API_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    key: str | None = Field(default=None, description="The Odds API key")
    base_url: str = Field(
        default="https://api.the-odds-api.com/v4", description="Base URL for The Odds API"
    )
    sport: str = Field(default="americanfootball_nfl", description="Sport key to fetch")
    default_bookmaker: str = Field(
        default="draftkings", description="Preferred bookmaker when parsing lines"
    )
    requests_per_month: int = Field(default=500, description="Monthly API request quota")
    request_timeout_seconds: float = Field(
        default=30.0, description="Total timeout for a single HTTP request"
    )


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    url: str = Field(..., description="Async SQLAlchemy connection URL")
    pool_size: int = Field(default=5, description="Database connection pool size")


class CacheConfig(BaseSettings):
    """Two-tier cache limits and lifetimes."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    memory_ttl_seconds: float = Field(default=300, description="Default memory tier TTL")
    persistent_ttl_seconds: float = Field(
        default=3600, description="Default persistent (database) tier TTL"
    )
    max_memory_items: int = Field(default=1000, description="Max entries held in memory")
    max_memory_bytes: int = Field(
        default=50 * 1024 * 1024, description="Max estimated memory tier size in bytes"
    )
    sweep_interval_seconds: float = Field(
        default=60, description="Interval between expired-entry sweeps"
    )
    persistent_timeout_seconds: float = Field(
        default=5.0, description="Timeout for a single persistent tier operation"
    )


class FreshnessConfig(BaseSettings):
    """Freshness service behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="FRESHNESS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    provider_timeout_seconds: float = Field(
        default=30.0, description="Timeout around a single provider call"
    )
    warm_delay_seconds: float = Field(
        default=1.0, description="Delay between weeks when warming the cache"
    )
    schedule_lookahead_days: int = Field(
        default=7, description="How far ahead the refresh scheduler looks for games"
    )


class ThrottleConfig(BaseSettings):
    """Upstream request budget (free tier defaults)."""

    model_config = SettingsConfigDict(
        env_prefix="THROTTLE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    monthly_limit: int = Field(default=500, description="Total monthly requests")
    daily_limit: int = Field(default=16, description="Daily limit to spread usage")
    safety_threshold: float = Field(
        default=0.85, description="Fraction of the monthly/daily limits actually used"
    )
    burst_limit: int = Field(default=5, description="Max requests within the burst window")
    burst_window_seconds: float = Field(default=60, description="Burst window length")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    level: str = Field(default="INFO", description="Logging level")
    file: str = Field(default="logs/picks.log", description="Log file path")


class Settings(BaseSettings):
    """
    Composed application settings loaded from environment variables.

    Example usage:
        settings = get_settings()
        api_key = settings.api.key
        memory_ttl = settings.cache.memory_ttl_seconds
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api: APIConfig = Field(default_factory=APIConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    freshness: FreshnessConfig = Field(default_factory=FreshnessConfig)
    throttle: ThrottleConfig = Field(default_factory=ThrottleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()  # type: ignore[call-arg]


def reset_settings_cache() -> None:
    """Clear cached settings; primarily for testing overrides."""
    get_settings.cache_clear()
