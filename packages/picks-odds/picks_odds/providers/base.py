"""Abstract interface for odds data providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from picks_core.api_models import GameOdds, OddsFetchOptions
from picks_core.time import same_calendar_day

from picks_odds.team_names import team_names_match


class OddsProvider(ABC):
    """
    Source of normalized betting lines.

    Implementations wrap one upstream feed. ``fetch_all`` must be a single
    upstream call; the weekly refresh relies on it being batched.
    """

    name: str = "unknown"

    async def __aenter__(self) -> OddsProvider:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release network resources."""

    @abstractmethod
    async def fetch_all(self, options: OddsFetchOptions | None = None) -> list[GameOdds]:
        """
        Fetch every currently available game.

        Raises:
            ProviderError: On network or HTTP failure
        """

    async def fetch_one(
        self, home_team: str, away_team: str, game_date: datetime
    ) -> GameOdds | None:
        """
        Find one game's odds by teams and kickoff day.

        Built on ``fetch_all``, so it costs the same quota as a full fetch.
        """
        games = await self.fetch_all()
        return find_matching_odds(games, home_team, away_team, game_date)

    @abstractmethod
    def estimate_remaining_quota(self) -> int | None:
        """Best-effort remaining request count, or None when unlimited/unknown."""

    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials are present."""


def find_matching_odds(
    games: list[GameOdds], home_team: str, away_team: str, game_date: datetime
) -> GameOdds | None:
    """Return the first feed game matching both teams on the same calendar day."""
    for odds in games:
        if (
            team_names_match(odds.home_team, home_team)
            and team_names_match(odds.away_team, away_team)
            and same_calendar_day(odds.game_date, game_date)
        ):
            return odds
    return None
