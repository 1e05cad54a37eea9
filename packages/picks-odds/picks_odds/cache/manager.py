"""Two-tier cache: process memory in front of a persistent store."""

from __future__ import annotations

import asyncio
import contextlib
import json
import time
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from picks_core.config import CacheConfig

from picks_odds.cache.entry import CacheStats, TierWriteResult
from picks_odds.cache.memory import MemoryTier
from picks_odds.cache.store import TAG_DELIMITER, PersistentCacheStore

logger = structlog.get_logger(__name__)

SERIALIZATION_PLACEHOLDER = "{}"


class TieredCache:
    """
    Key/value cache with a fast in-process tier and a durable persistent tier.

    Reads check memory first, then the persistent tier, promoting persistent
    hits into memory. Writes go to both tiers independently: the memory write
    is visible before the persistent write is awaited, and neither failure
    rolls back the other.

    The memory tier is a per-process accelerator; only the persistent tier is
    visible to other processes.

    Usage:
        async with TieredCache(DatabaseCacheStore(), settings.cache) as cache:
            await cache.set("odds:game:123", payload, tags=["odds"])
            payload = await cache.get("odds:game:123")
    """

    def __init__(self, store: PersistentCacheStore, config: CacheConfig | None = None):
        self.config = config or CacheConfig()
        self._store = store
        self._memory = MemoryTier(
            max_items=self.config.max_memory_items,
            max_bytes=self.config.max_memory_bytes,
            default_ttl_seconds=self.config.memory_ttl_seconds,
        )
        self._stats = CacheStats()
        self._sweep_task: asyncio.Task[None] | None = None
        self._started_monotonic = time.monotonic()

    async def __aenter__(self) -> TieredCache:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic expiry sweep on the running event loop."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="cache-expiry-sweep")
        logger.info("cache_sweep_started", interval_seconds=self.config.sweep_interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep and wait for it to finish."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None
        logger.info("cache_sweep_stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.sweep_interval_seconds)
            self.sweep()

    def sweep(self) -> int:
        """Remove expired memory entries now."""
        return self._memory.purge_expired()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, key: str, tags: Iterable[str] = ()) -> Any | None:
        """
        Return the cached value for ``key`` or None.

        Never raises: any internal error is logged and counted as a miss.
        """
        self._stats.total_requests += 1
        try:
            entry = self._memory.lookup(key)
            if entry is not None:
                self._stats.memory_hits += 1
                return entry.data

            value = await self._get_from_persistent(key, tags)
            if value is not None:
                self._stats.persistent_hits += 1
                return value
        except Exception as e:
            logger.error("cache_get_failed", key=key, error=str(e))

        self._stats.misses += 1
        return None

    async def _get_from_persistent(self, key: str, tags: Iterable[str]) -> Any | None:
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                stored = await self._store.fetch(key)
        except Exception as e:
            logger.warning("persistent_cache_read_failed", key=key, error=str(e))
            return None

        if stored is None:
            return None

        try:
            value = json.loads(stored.data)
        except (TypeError, ValueError) as e:
            logger.error("cache_deserialize_failed", key=key, error=str(e))
            return None

        remaining = (stored.expires_at - datetime.now(UTC)).total_seconds()
        if remaining <= 0:
            return None

        promoted_tags = set(tags) | stored.tags
        self._memory.put(
            key,
            value,
            tags=promoted_tags,
            ttl_seconds=min(self.config.memory_ttl_seconds, remaining),
        )
        logger.debug("cache_promoted", key=key)
        return value

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(
        self,
        key: str,
        data: Any,
        tags: Iterable[str] = (),
        ttl: float | None = None,
    ) -> TierWriteResult:
        """
        Write ``data`` to both tiers.

        Args:
            key: Cache key
            data: JSON-compatible value
            tags: Labels for group invalidation
            ttl: Lifetime in seconds for both tiers; defaults to the per-tier
                configured TTLs

        Returns:
            TierWriteResult describing which tiers accepted the write. A
            non-positive ``ttl`` or a tag containing the tag delimiter is
            rejected by both tiers.
        """
        tag_set = frozenset(tags)
        rejection = _validate_write(ttl, tag_set)
        if rejection is not None:
            logger.error("cache_set_rejected", key=key, reason=rejection)
            return TierWriteResult(memory_ok=False, persistent_error=rejection)

        result = TierWriteResult()

        try:
            if self._memory.put(key, data, tags=tag_set, ttl_seconds=ttl) is None:
                result.memory_ok = False
        except Exception as e:
            logger.error("memory_cache_set_failed", key=key, error=str(e))
            result.memory_ok = False

        persistent_ttl = self.config.persistent_ttl_seconds if ttl is None else ttl
        expires_at = datetime.now(UTC) + timedelta(seconds=persistent_ttl)
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                await self._store.upsert(key, self._serialize(key, data), expires_at, tag_set)
        except Exception as e:
            logger.error("persistent_cache_set_failed", key=key, error=str(e))
            result.persistent_error = str(e) or type(e).__name__

        return result

    async def invalidate(self, key: str) -> TierWriteResult:
        """Remove ``key`` from both tiers."""
        self._memory.remove(key)
        result = TierWriteResult()
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                await self._store.delete(key)
        except Exception as e:
            logger.error("persistent_cache_invalidate_failed", key=key, error=str(e))
            result.persistent_error = str(e) or type(e).__name__
        else:
            logger.info("cache_invalidated", key=key)
        return result

    async def invalidate_by_tags(self, tags: Iterable[str]) -> TierWriteResult:
        """Remove every entry carrying any of ``tags`` from both tiers."""
        tag_list = [tag for tag in dict.fromkeys(tags) if tag]
        removed = self._memory.remove_by_tags(tag_list)
        result = TierWriteResult()
        persistent_removed = 0
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                for tag in tag_list:
                    persistent_removed += await self._store.delete_by_tag(tag)
        except Exception as e:
            logger.error("persistent_cache_invalidate_tags_failed", tags=tag_list, error=str(e))
            result.persistent_error = str(e) or type(e).__name__

        logger.info(
            "cache_invalidated_by_tags",
            tags=tag_list,
            memory_removed=removed,
            persistent_removed=persistent_removed,
        )
        return result

    async def clear_all(self) -> TierWriteResult:
        """Drop both tiers and reset counters."""
        self._memory.clear()
        self._stats = CacheStats()
        result = TierWriteResult()
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                await self._store.clear()
        except Exception as e:
            logger.error("persistent_cache_clear_failed", error=str(e))
            result.persistent_error = str(e) or type(e).__name__
        else:
            logger.info("cache_cleared")
        return result

    @staticmethod
    def _serialize(key: str, data: Any) -> str:
        try:
            return json.dumps(data)
        except (TypeError, ValueError) as e:
            logger.error("cache_serialize_failed", key=key, error=str(e))
            return SERIALIZATION_PLACEHOLDER

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def keys(self) -> list[str]:
        """Keys currently held in the memory tier (may include expired ones)."""
        return self._memory.keys()

    def get_stats(self) -> CacheStats:
        """Return a snapshot of the counters."""
        return CacheStats(
            memory_hits=self._stats.memory_hits,
            persistent_hits=self._stats.persistent_hits,
            misses=self._stats.misses,
            total_requests=self._stats.total_requests,
            evictions=self._memory.evictions,
            memory_usage=self._memory.usage_bytes,
        )

    async def get_health_check(self) -> dict[str, Any]:
        status = "healthy"
        try:
            async with asyncio.timeout(self.config.persistent_timeout_seconds):
                persistent_items: int | None = await self._store.count()
        except Exception as e:
            logger.warning("persistent_cache_count_failed", error=str(e))
            persistent_items = None
            status = "degraded"

        return {
            "status": status,
            "memory_cache": {
                "items": len(self._memory),
                "max_items": self._memory.max_items,
                "usage": self._memory.usage_bytes,
                "max_usage": self._memory.max_bytes,
            },
            "persistent_cache": {"items": persistent_items},
            "stats": self.get_stats().to_dict(),
            "sweep_running": self.running,
            "uptime_seconds": round(time.monotonic() - self._started_monotonic, 1),
        }


def _validate_write(ttl: float | None, tags: frozenset[str]) -> str | None:
    if ttl is not None and ttl <= 0:
        return f"ttl must be positive, got {ttl}"
    bad = sorted(tag for tag in tags if TAG_DELIMITER in tag)
    if bad:
        return f"tags must not contain {TAG_DELIMITER!r}: {', '.join(bad)}"
    return None
