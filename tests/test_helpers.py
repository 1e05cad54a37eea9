"""Reusable test helpers and stub implementations for providers and cache stores."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime

from picks_core.api_models import GameOdds, OddsFetchOptions
from picks_odds.cache.entry import StoredEntry
from picks_odds.exceptions import ProviderError
from picks_odds.providers.base import OddsProvider


def make_odds(
    home_team: str,
    away_team: str,
    game_date: datetime,
    *,
    game_id: str = "upstream-1",
    home_spread: float | None = -3.5,
    over_under: float | None = 47.5,
    provider: str = "Stub",
) -> GameOdds:
    """Build a GameOdds record as a provider would return it."""
    return GameOdds(
        game_id=game_id,
        home_team=home_team,
        away_team=away_team,
        game_date=game_date,
        home_spread=home_spread,
        away_spread=None if home_spread is None else -home_spread,
        home_moneyline=-170,
        away_moneyline=145,
        over_under=over_under,
        provider=provider,
        last_update=datetime.now(UTC),
    )


class StubOddsProvider(OddsProvider):
    """
    Provider returning a fixed feed.

    Counts ``fetch_all`` calls so tests can assert how many upstream requests
    a code path costs. ``delay`` holds each fetch open to let concurrent
    callers pile up.

    Example:
        >>> provider = StubOddsProvider([make_odds("Chiefs", "Ravens", kickoff)])
        >>> await provider.fetch_one("Kansas City Chiefs", "Baltimore Ravens", kickoff)
    """

    name = "Stub"

    def __init__(
        self,
        games: list[GameOdds] | None = None,
        *,
        configured: bool = True,
        delay: float = 0.0,
    ):
        """
        Initialize stub with the feed to return.

        Args:
            games: Records returned from every fetch
            configured: Value reported by is_configured()
            delay: Seconds to sleep inside each fetch
        """
        self.games = list(games or [])
        self.configured = configured
        self.delay = delay
        self.fetch_count = 0
        self.closed = False

    async def fetch_all(self, options: OddsFetchOptions | None = None) -> list[GameOdds]:
        self.fetch_count += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.games)

    def estimate_remaining_quota(self) -> int | None:
        return 500 - self.fetch_count

    def is_configured(self) -> bool:
        return self.configured

    async def close(self) -> None:
        self.closed = True


class FailingOddsProvider(StubOddsProvider):
    """Provider whose every fetch raises ProviderError."""

    name = "Failing"

    async def fetch_all(self, options: OddsFetchOptions | None = None) -> list[GameOdds]:
        self.fetch_count += 1
        raise ProviderError("upstream unavailable")


class InMemoryCacheStore:
    """
    Dict-backed persistent tier with the same semantics as DatabaseCacheStore.

    Set ``fail`` to make every operation raise, simulating a database outage.
    """

    def __init__(self):
        self.rows: dict[str, StoredEntry] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("persistent tier unavailable")

    async def fetch(self, key: str) -> StoredEntry | None:
        self._check()
        entry = self.rows.get(key)
        if entry is None:
            return None
        if entry.expires_at <= datetime.now(UTC):
            del self.rows[key]
            return None
        entry.hit_count += 1
        return entry

    async def upsert(self, key: str, data: str, expires_at: datetime, tags: Iterable[str]) -> None:
        self._check()
        self.rows[key] = StoredEntry(key=key, data=data, expires_at=expires_at, tags=frozenset(tags))

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.rows.pop(key, None) is not None else 0

    async def delete_by_tag(self, tag: str) -> int:
        self._check()
        doomed = [key for key, entry in self.rows.items() if tag in entry.tags]
        for key in doomed:
            del self.rows[key]
        return len(doomed)

    async def count(self) -> int:
        self._check()
        return len(self.rows)

    async def clear(self) -> int:
        self._check()
        removed = len(self.rows)
        self.rows.clear()
        return removed
