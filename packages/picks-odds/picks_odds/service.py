"""Freshness-aware odds lookups in front of the provider and the database."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from picks_core.api_models import CachedOdds, GameOdds, game_snapshot_to_odds
from picks_core.config import FreshnessConfig
from picks_core.database import async_session_maker
from picks_core.models import Game
from picks_core.time import ensure_utc

from picks_odds.cache import TieredCache, TierWriteResult
from picks_odds.exceptions import ProviderNotConfiguredError, ProviderThrottledError
from picks_odds.freshness import calculate_ttl, hours_until_game
from picks_odds.providers.base import OddsProvider, find_matching_odds
from picks_odds.storage import GameReader, OddsWriter
from picks_odds.throttle import ApiThrottler, ApiUsageStats

logger = structlog.get_logger(__name__)

CACHE_KEY_PREFIX = "odds:game:"


def cache_key(game_id: str) -> str:
    """Cache key for a game's odds."""
    return f"{CACHE_KEY_PREFIX}{game_id}"


def cache_tags(game: Game) -> list[str]:
    """Invalidation tags for a game's cached odds."""
    return [
        "odds",
        f"game-{game.id}",
        f"season-{game.season}",
        f"week-{game.season}-{game.week}",
    ]


def week_tag(season: int, week: int) -> str:
    return f"week-{season}-{week}"


@dataclass(slots=True)
class BatchRefreshResult:
    """Outcome of refreshing every open game in a week."""

    updated_count: int
    errors: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def success(self) -> bool:
        """Return True when no game failed."""
        return not self.errors


@dataclass(slots=True)
class UsageStats:
    """Diagnostic view of provider quota and cache contents."""

    provider_name: str
    remaining_quota: int | None
    cache_size: int
    cached_game_ids: list[str]
    api_usage: ApiUsageStats | None = None


class FreshnessService:
    """
    Serves game odds with cache lifetimes that shrink as kickoff approaches.

    Lookups go cache, then provider, then the last persisted snapshot. A
    successful fetch is written to the cache with an adaptive TTL, updates the
    game's odds columns and appends an ``odds_history`` row. Provider failures
    never reach the caller.

    Concurrent misses for the same game share one provider call.
    """

    def __init__(
        self,
        cache: TieredCache,
        provider: OddsProvider,
        *,
        session_factory=async_session_maker,
        config: FreshnessConfig | None = None,
        throttler: ApiThrottler | None = None,
    ) -> None:
        """
        Args:
            cache: Tiered cache holding serialized CachedOdds
            provider: Upstream odds source
            session_factory: Async session factory for games and history
            config: Timeouts and warm-up pacing
            throttler: Request budget checked before each provider call;
                None disables client-side throttling
        """
        self.cache = cache
        self.provider = provider
        self.config = config or FreshnessConfig()
        self.throttler = throttler
        self._session_factory = session_factory
        self._in_flight: dict[str, asyncio.Task[GameOdds | None]] = {}

    # ------------------------------------------------------------------
    # Single game
    # ------------------------------------------------------------------

    async def get_record(self, game_id: str, force_refresh: bool = False) -> GameOdds | None:
        """
        Get current odds for a game.

        Args:
            game_id: Game identifier
            force_refresh: Skip the cache and go to the provider

        Returns:
            Fresh or cached odds, the last persisted snapshot when the provider
            fails, or None when the game has never had odds or cannot be loaded
        """
        if not force_refresh:
            cached = await self._get_cached(game_id)
            if cached is not None:
                logger.debug("odds_cache_hit", game_id=game_id)
                return cached

        return await self._load_shared(game_id)

    async def _get_cached(self, game_id: str) -> GameOdds | None:
        value = await self.cache.get(cache_key(game_id))
        if value is None:
            return None
        try:
            return CachedOdds.from_dict(value).odds
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("odds_cache_entry_invalid", game_id=game_id, error=str(e))
            return None

    async def _load_shared(self, game_id: str) -> GameOdds | None:
        task = self._in_flight.get(game_id)
        if task is None:
            task = asyncio.create_task(self._load_record(game_id))
            self._in_flight[game_id] = task

            def _forget(done: asyncio.Task[GameOdds | None]) -> None:
                if self._in_flight.get(game_id) is done:
                    del self._in_flight[game_id]

            task.add_done_callback(_forget)
        else:
            logger.debug("odds_request_coalesced", game_id=game_id)

        # A cancelled waiter must not cancel the fetch other callers share
        return await asyncio.shield(task)

    async def _load_record(self, game_id: str) -> GameOdds | None:
        try:
            async with self._session_factory() as session:
                game = await GameReader(session).get_game(game_id)
        except Exception as e:
            logger.error("game_lookup_failed", game_id=game_id, error=str(e) or type(e).__name__)
            return None

        if game is None:
            logger.warning("game_not_found", game_id=game_id)
            return None

        try:
            match = await self._fetch_one(game)
        except Exception as e:
            logger.warning(
                "odds_provider_failed",
                game_id=game_id,
                provider=self.provider.name,
                error=str(e) or type(e).__name__,
            )
            return game_snapshot_to_odds(game)

        if match is None:
            logger.info("odds_not_found_upstream", game_id=game_id, provider=self.provider.name)
            return game_snapshot_to_odds(game)

        odds = match.for_game(game.id)
        try:
            await self._persist(game, odds)
        except Exception as e:
            logger.error("odds_persist_failed", game_id=game_id, error=str(e))
        return odds

    # ------------------------------------------------------------------
    # Bulk paths
    # ------------------------------------------------------------------

    async def refresh_batch(self, season: int, week: int) -> BatchRefreshResult:
        """
        Refresh every open game in a week from a single provider fetch.

        A game without an upstream match, or whose write fails, is reported in
        ``errors`` and does not stop the rest of the batch.
        """
        try:
            async with self._session_factory() as session:
                games = await GameReader(session).get_open_games(season, week)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error("game_lookup_failed", season=season, week=week, error=error)
            return BatchRefreshResult(updated_count=0, errors=[f"Game lookup failed: {error}"])

        if not games:
            logger.info("odds_batch_no_open_games", season=season, week=week)
            return BatchRefreshResult(updated_count=0)

        try:
            feed = await self._fetch_all()
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error("odds_batch_fetch_failed", season=season, week=week, error=error)
            return BatchRefreshResult(updated_count=0, errors=[f"Bulk fetch failed: {error}"])

        updated = 0
        errors: list[str] = []
        for game in games:
            match = find_matching_odds(feed, game.home_team, game.away_team, game.game_date)
            if match is None:
                errors.append(f"No odds found for {game.away_team} @ {game.home_team} ({game.id})")
                continue

            try:
                await self._persist(game, match.for_game(game.id))
                updated += 1
            except Exception as e:
                logger.warning("odds_batch_game_failed", game_id=game.id, error=str(e))
                errors.append(f"Failed to update {game.id}: {e}")

        logger.info(
            "odds_batch_refreshed",
            season=season,
            week=week,
            games=len(games),
            updated=updated,
            errors=len(errors),
        )
        return BatchRefreshResult(updated_count=updated, errors=errors)

    async def get_many(self, game_ids: Iterable[str]) -> dict[str, GameOdds | None]:
        """
        Get odds for several games.

        Cache hits are returned directly. When more than one game misses, the
        misses are resolved from one bulk provider fetch.
        """
        requested = list(dict.fromkeys(game_ids))
        results: dict[str, GameOdds | None] = {}
        misses: list[str] = []

        for game_id in requested:
            cached = await self._get_cached(game_id)
            if cached is not None:
                results[game_id] = cached
            else:
                misses.append(game_id)

        if len(misses) == 1:
            results[misses[0]] = await self._load_shared(misses[0])
        elif misses:
            results.update(await self._load_many(misses))

        return {game_id: results.get(game_id) for game_id in requested}

    async def _load_many(self, game_ids: list[str]) -> dict[str, GameOdds | None]:
        results: dict[str, GameOdds | None] = {game_id: None for game_id in game_ids}
        try:
            async with self._session_factory() as session:
                games = await GameReader(session).get_games(game_ids)
        except Exception as e:
            logger.error(
                "game_lookup_failed", games=len(game_ids), error=str(e) or type(e).__name__
            )
            return results

        if not games:
            return results

        try:
            feed = await self._fetch_all()
        except Exception as e:
            logger.warning("odds_bulk_fetch_failed", games=len(games), error=str(e) or type(e).__name__)
            for game_id, game in games.items():
                results[game_id] = game_snapshot_to_odds(game)
            return results

        for game_id, game in games.items():
            match = find_matching_odds(feed, game.home_team, game.away_team, game.game_date)
            if match is None:
                results[game_id] = game_snapshot_to_odds(game)
                continue

            odds = match.for_game(game_id)
            try:
                await self._persist(game, odds)
            except Exception as e:
                logger.error("odds_persist_failed", game_id=game_id, error=str(e))
            results[game_id] = odds

        return results

    async def warm_weeks(
        self, weeks: Iterable[tuple[int, int]], delay_seconds: float | None = None
    ) -> list[BatchRefreshResult]:
        """
        Preload the cache by refreshing each ``(season, week)`` in turn.

        Weeks run sequentially with a pause between them to spread upstream
        usage. A failing week is logged and recorded; the rest still run.
        """
        delay = self.config.warm_delay_seconds if delay_seconds is None else delay_seconds
        results: list[BatchRefreshResult] = []

        for index, (season, week) in enumerate(weeks):
            if index and delay > 0:
                await asyncio.sleep(delay)
            try:
                result = await self.refresh_batch(season, week)
            except Exception as e:
                logger.error("cache_warm_week_failed", season=season, week=week, error=str(e))
                result = BatchRefreshResult(updated_count=0, errors=[f"Week {season}-{week}: {e}"])
            results.append(result)

        logger.info(
            "cache_warmed",
            weeks=len(results),
            updated=sum(r.updated_count for r in results),
            errors=sum(len(r.errors) for r in results),
        )
        return results

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    async def invalidate_game(self, game_id: str) -> TierWriteResult:
        return await self.cache.invalidate(cache_key(game_id))

    async def invalidate_week(self, season: int, week: int) -> TierWriteResult:
        return await self.cache.invalidate_by_tags([week_tag(season, week)])

    async def clear_cache(self) -> TierWriteResult:
        return await self.cache.clear_all()

    def get_usage_stats(self) -> UsageStats:
        keys = self.cache.keys()
        return UsageStats(
            provider_name=self.provider.name,
            remaining_quota=self.provider.estimate_remaining_quota(),
            cache_size=len(keys),
            cached_game_ids=[
                key.removeprefix(CACHE_KEY_PREFIX) for key in keys if key.startswith(CACHE_KEY_PREFIX)
            ],
            api_usage=self.throttler.get_stats() if self.throttler else None,
        )

    # ------------------------------------------------------------------
    # Provider and persistence
    # ------------------------------------------------------------------

    def _reserve_request(self) -> None:
        if not self.provider.is_configured():
            raise ProviderNotConfiguredError(f"{self.provider.name} is not configured")
        if self.throttler is not None:
            if not self.throttler.can_make_request():
                raise ProviderThrottledError("Upstream request budget exhausted")
            self.throttler.record_request()

    async def _fetch_one(self, game: Game) -> GameOdds | None:
        self._reserve_request()
        async with asyncio.timeout(self.config.provider_timeout_seconds):
            return await self.provider.fetch_one(
                game.home_team, game.away_team, ensure_utc(game.game_date)
            )

    async def _fetch_all(self) -> list[GameOdds]:
        self._reserve_request()
        async with asyncio.timeout(self.config.provider_timeout_seconds):
            return await self.provider.fetch_all()

    async def _persist(self, game: Game, odds: GameOdds) -> None:
        """Cache ``odds`` with a kickoff-based TTL, then update snapshot and history."""
        now = datetime.now(UTC)
        ttl = calculate_ttl(hours_until_game(game.game_date, now))
        record = CachedOdds(odds=odds, cached_at=now, ttl_seconds=ttl)

        write = await self.cache.set(
            cache_key(game.id), record.to_dict(), tags=cache_tags(game), ttl=ttl
        )
        if not write.ok:
            logger.warning(
                "odds_cache_write_degraded",
                game_id=game.id,
                memory_ok=write.memory_ok,
                persistent_error=write.persistent_error,
            )

        async with self._session_factory() as session:
            await OddsWriter(session).store_odds(game.id, odds)
            await session.commit()

        logger.info("odds_refreshed", game_id=game.id, ttl_seconds=ttl, provider=odds.provider)
