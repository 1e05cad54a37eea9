"""In-process tier: bounded LRU with per-entry expiry."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from picks_odds.cache.entry import CacheEntry, estimate_entry_size

logger = structlog.get_logger(__name__)


class MemoryTier:
    """
    Process-local cache tier.

    Entries are kept in access order so the least recently accessed entry is
    always at the front. All operations are synchronous and never await, so
    the expiry sweep cannot interleave with a get or set.
    """

    def __init__(self, max_items: int, max_bytes: int, default_ttl_seconds: float):
        if max_items < 1:
            raise ValueError("max_items must be at least 1")
        self.max_items = max_items
        self.max_bytes = max_bytes
        self.default_ttl_seconds = default_ttl_seconds
        self.evictions = 0
        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()
        self._usage = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def usage_bytes(self) -> int:
        return self._usage

    def keys(self) -> list[str]:
        return list(self._entries)

    def lookup(self, key: str, now: datetime | None = None) -> CacheEntry[Any] | None:
        """Return the live entry for ``key``, purging it if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = now or datetime.now(UTC)
        if entry.is_expired(now):
            self._drop(key)
            self.evictions += 1
            logger.debug("memory_cache_expired", key=key)
            return None

        entry.touch(now)
        self._entries.move_to_end(key)
        return entry

    def put(
        self,
        key: str,
        data: Any,
        tags: Iterable[str] = (),
        ttl_seconds: float | None = None,
        now: datetime | None = None,
    ) -> CacheEntry[Any] | None:
        """
        Insert or replace ``key``, evicting least recently used entries to fit.

        Returns None without evicting anything when the entry alone exceeds
        ``max_bytes``; any previous value for ``key`` is dropped.
        """
        now = now or datetime.now(UTC)
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(
            key=key,
            data=data,
            expires_at=now + timedelta(seconds=ttl),
            created_at=now,
            last_accessed_at=now,
            tags=frozenset(tags),
        )
        entry.size_bytes = self._estimate(entry)

        if key in self._entries:
            self._drop(key)

        if entry.size_bytes > self.max_bytes:
            logger.warning(
                "memory_cache_entry_too_large",
                key=key,
                size_bytes=entry.size_bytes,
                max_bytes=self.max_bytes,
            )
            return None

        self.purge_expired(now)
        self._make_room(entry.size_bytes)

        self._entries[key] = entry
        self._usage += entry.size_bytes
        return entry

    def remove(self, key: str) -> bool:
        if key not in self._entries:
            return False
        self._drop(key)
        return True

    def remove_by_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry whose tags intersect ``tags``."""
        wanted = set(tags)
        doomed = [key for key, entry in self._entries.items() if entry.tags & wanted]
        for key in doomed:
            self._drop(key)
        return len(doomed)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Remove entries already past expiry; returns how many were removed."""
        now = now or datetime.now(UTC)
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._drop(key)
        self.evictions += len(expired)
        if expired:
            logger.info("memory_cache_cleaned", removed=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._usage = 0
        self.evictions = 0

    def _make_room(self, incoming_bytes: int) -> None:
        while self._entries and (
            len(self._entries) >= self.max_items or self._usage + incoming_bytes > self.max_bytes
        ):
            key, _ = next(iter(self._entries.items()))
            self._drop(key)
            self.evictions += 1
            logger.debug("memory_cache_evicted", key=key)

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._usage -= entry.size_bytes

    @staticmethod
    def _estimate(entry: CacheEntry[Any]) -> int:
        try:
            return estimate_entry_size(entry)
        except (TypeError, ValueError) as e:
            # Unserializable payloads (e.g. circular references) count as a
            # nominal size rather than failing the write.
            logger.warning("memory_cache_size_estimate_failed", key=entry.key, error=str(e))
            return len(entry.key) * 2
