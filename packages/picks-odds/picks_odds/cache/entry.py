"""Cache entry, statistics and write-result types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    """A single memory tier entry."""

    key: str
    data: T
    expires_at: datetime
    created_at: datetime
    last_accessed_at: datetime
    tags: frozenset[str] = frozenset()
    version: int = 1
    hit_count: int = 0
    size_bytes: int = 0

    def __post_init__(self) -> None:
        if self.expires_at <= self.created_at:
            raise ValueError(f"Cache entry {self.key!r} must expire after it is created")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def touch(self, now: datetime) -> None:
        """Record a read."""
        self.last_accessed_at = now
        self.hit_count += 1


def estimate_entry_size(entry: CacheEntry[Any]) -> int:
    """
    Rough memory estimate for an entry: two bytes per character of its JSON form.

    Overestimates, but only needs to be monotonic in payload size.
    """
    rendered = json.dumps(
        {
            "key": entry.key,
            "data": entry.data,
            "expires_at": entry.expires_at,
            "version": entry.version,
            "tags": sorted(entry.tags),
            "hit_count": entry.hit_count,
            "created_at": entry.created_at,
            "last_accessed_at": entry.last_accessed_at,
        },
        default=str,
    )
    return len(rendered) * 2


@dataclass(slots=True)
class CacheStats:
    """Point-in-time cache counters."""

    memory_hits: int = 0
    persistent_hits: int = 0
    misses: int = 0
    total_requests: int = 0
    evictions: int = 0
    memory_usage: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.persistent_hits

    @property
    def hit_ratio(self) -> float:
        """(memory hits + persistent hits) / total requests, rounded to 2 places."""
        if self.total_requests == 0:
            return 0.0
        return round(self.hits / self.total_requests, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "memory_hits": self.memory_hits,
            "persistent_hits": self.persistent_hits,
            "misses": self.misses,
            "total_requests": self.total_requests,
            "hit_ratio": self.hit_ratio,
            "evictions": self.evictions,
            "memory_usage": self.memory_usage,
        }


@dataclass(slots=True)
class TierWriteResult:
    """Outcome of a write that touches both tiers."""

    memory_ok: bool = True
    persistent_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.memory_ok and self.persistent_error is None

    @property
    def degraded(self) -> bool:
        """Memory tier succeeded but the persistent write was lost."""
        return self.memory_ok and self.persistent_error is not None


@dataclass(slots=True)
class StoredEntry:
    """A row read back from the persistent tier."""

    key: str
    data: str
    expires_at: datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    hit_count: int = 0
