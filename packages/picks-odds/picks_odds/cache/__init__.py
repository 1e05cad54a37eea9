"""Two-tier (memory + database) cache."""

from picks_odds.cache.entry import CacheEntry, CacheStats, StoredEntry, TierWriteResult
from picks_odds.cache.manager import TieredCache
from picks_odds.cache.memory import MemoryTier
from picks_odds.cache.store import DatabaseCacheStore, PersistentCacheStore

__all__ = [
    "CacheEntry",
    "CacheStats",
    "DatabaseCacheStore",
    "MemoryTier",
    "PersistentCacheStore",
    "StoredEntry",
    "TierWriteResult",
    "TieredCache",
]
