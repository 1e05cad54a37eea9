"""Persistent cache tier backed by the ``cache_entries`` table."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Protocol

import structlog
from picks_core.database import async_session_maker
from picks_core.models import CacheRecord
from picks_core.time import ensure_utc
from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from picks_odds.cache.entry import StoredEntry
from picks_odds.exceptions import CacheTierError

logger = structlog.get_logger(__name__)

TAG_DELIMITER = ","


def join_tags(tags: Iterable[str]) -> str:
    """
    Join tags into the stored tag string.

    The string is wrapped in delimiters (",odds,week-1,") so a substring match
    on ",week-1," cannot hit "week-10".
    """
    cleaned = sorted({tag for tag in tags if tag})
    if not cleaned:
        return ""
    return TAG_DELIMITER + TAG_DELIMITER.join(cleaned) + TAG_DELIMITER


def split_tags(joined: str) -> frozenset[str]:
    return frozenset(tag for tag in joined.split(TAG_DELIMITER) if tag)


class PersistentCacheStore(Protocol):
    """Operations the two-tier cache needs from its durable tier."""

    async def fetch(self, key: str) -> StoredEntry | None: ...

    async def upsert(
        self, key: str, data: str, expires_at: datetime, tags: Iterable[str]
    ) -> None: ...

    async def delete(self, key: str) -> int: ...

    async def delete_by_tag(self, tag: str) -> int: ...

    async def count(self) -> int: ...

    async def clear(self) -> int: ...


class DatabaseCacheStore:
    """
    Persistent tier using an async SQLAlchemy session per operation.

    Database and connection errors are raised as CacheTierError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session_maker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            raise CacheTierError(f"cache {operation} failed: {e}") from e

    async def fetch(self, key: str) -> StoredEntry | None:
        """
        Read a live entry, bumping its hit counter.

        Expired rows are deleted on read and reported as missing.
        """
        now = datetime.now(UTC)
        async with self._session("fetch") as session:
            record = await session.get(CacheRecord, key)
            if record is None:
                return None

            if ensure_utc(record.expires_at) <= now:
                await session.delete(record)
                await session.commit()
                logger.debug("persistent_cache_expired", key=key)
                return None

            record.hit_count += 1
            record.last_accessed_at = now
            entry = StoredEntry(
                key=record.key,
                data=record.data,
                expires_at=ensure_utc(record.expires_at),
                tags=split_tags(record.tags),
                hit_count=record.hit_count,
            )
            await session.commit()
            return entry

    async def upsert(self, key: str, data: str, expires_at: datetime, tags: Iterable[str]) -> None:
        now = datetime.now(UTC)
        joined = join_tags(tags)
        async with self._session("upsert") as session:
            record = await session.get(CacheRecord, key)
            if record is None:
                session.add(
                    CacheRecord(
                        key=key,
                        data=data,
                        expires_at=expires_at,
                        tags=joined,
                        created_at=now,
                        last_accessed_at=now,
                    )
                )
            else:
                record.data = data
                record.expires_at = expires_at
                record.tags = joined
                record.last_accessed_at = now
            await session.commit()

    async def delete(self, key: str) -> int:
        async with self._session("delete") as session:
            result = await session.execute(delete(CacheRecord).where(CacheRecord.key == key))
            await session.commit()
            return result.rowcount or 0

    async def delete_by_tag(self, tag: str) -> int:
        pattern = f"{TAG_DELIMITER}{tag}{TAG_DELIMITER}"
        async with self._session("delete_by_tag") as session:
            result = await session.execute(
                delete(CacheRecord).where(CacheRecord.tags.contains(pattern, autoescape=True))
            )
            await session.commit()
            return result.rowcount or 0

    async def count(self) -> int:
        async with self._session("count") as session:
            result = await session.execute(select(func.count()).select_from(CacheRecord))
            return int(result.scalar_one())

    async def summary(self) -> dict[str, Any]:
        """Row counts and total hits across every process sharing the table."""
        now = datetime.now(UTC)
        async with self._session("summary") as session:
            result = await session.execute(
                select(
                    func.count(),
                    func.coalesce(func.sum(case((CacheRecord.expires_at <= now, 1), else_=0)), 0),
                    func.coalesce(func.sum(CacheRecord.hit_count), 0),
                ).select_from(CacheRecord)
            )
            items, expired, hits = result.one()
        return {"items": int(items), "expired": int(expired), "total_hits": int(hits)}

    async def clear(self) -> int:
        async with self._session("clear") as session:
            result = await session.execute(delete(CacheRecord))
            await session.commit()
            return result.rowcount or 0
