"""Process-level wiring of the cache, provider, throttler and freshness service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from picks_core.config import Settings, get_settings
from picks_core.database import async_session_maker

from picks_odds.cache import DatabaseCacheStore, TieredCache
from picks_odds.providers import OddsProvider, TheOddsApiProvider
from picks_odds.service import FreshnessService
from picks_odds.throttle import ApiThrottler

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def freshness_runtime(
    settings: Settings | None = None,
    *,
    provider: OddsProvider | None = None,
    session_factory=async_session_maker,
) -> AsyncIterator[FreshnessService]:
    """
    Build one FreshnessService for the lifetime of the block.

    The cache expiry sweep runs while the block is open; on exit the sweep is
    cancelled and the provider's HTTP session is closed.

    Example:
        async with freshness_runtime() as service:
            odds = await service.get_record("game-123")
    """
    settings = settings or get_settings()
    provider = provider or TheOddsApiProvider(settings.api)
    cache = TieredCache(DatabaseCacheStore(session_factory), settings.cache)
    throttler = ApiThrottler(settings.throttle)

    async with provider, cache:
        logger.info(
            "freshness_runtime_started",
            provider=provider.name,
            provider_configured=provider.is_configured(),
        )
        try:
            yield FreshnessService(
                cache,
                provider,
                session_factory=session_factory,
                config=settings.freshness,
                throttler=throttler,
            )
        finally:
            logger.info("freshness_runtime_stopped", cache_stats=cache.get_stats().to_dict())
