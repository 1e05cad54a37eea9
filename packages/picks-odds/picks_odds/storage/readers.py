"""Database read operations for games and odds history."""

from __future__ import annotations

from datetime import datetime

import structlog
from picks_core.models import Game, OddsHistory
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


class GameReader:
    """Handles read operations for games and their odds."""

    def __init__(self, session: AsyncSession):
        """
        Initialize reader with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def get_game(self, game_id: str) -> Game | None:
        """
        Get game by ID.

        Args:
            game_id: Game identifier

        Returns:
            Game or None if not found
        """
        result = await self.session.execute(select(Game).where(Game.id == game_id))
        return result.scalar_one_or_none()

    async def get_games(self, game_ids: list[str]) -> dict[str, Game]:
        """Get several games at once, keyed by ID; unknown IDs are omitted."""
        if not game_ids:
            return {}
        result = await self.session.execute(select(Game).where(Game.id.in_(game_ids)))
        return {game.id: game for game in result.scalars().all()}

    async def get_open_games(self, season: int, week: int) -> list[Game]:
        """
        Get games in a week that have not finished.

        Args:
            season: Season year
            week: Week number

        Returns:
            Games ordered by kickoff
        """
        query = (
            select(Game)
            .where(
                and_(
                    Game.season == season,
                    Game.week == week,
                    Game.is_completed.is_(False),
                )
            )
            .order_by(Game.game_date)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_odds_history(self, game_id: str, limit: int | None = None) -> list[OddsHistory]:
        """
        Get recorded odds updates for a game, oldest first.

        Args:
            game_id: Game identifier
            limit: Maximum number of rows (most recent ones) to return

        Returns:
            List of OddsHistory rows
        """
        query = select(OddsHistory).where(OddsHistory.game_id == game_id)
        if limit is not None:
            query = query.order_by(OddsHistory.timestamp.desc(), OddsHistory.id.desc()).limit(limit)
            result = await self.session.execute(query)
            return list(reversed(result.scalars().all()))

        query = query.order_by(OddsHistory.timestamp, OddsHistory.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_unfinished_games_between(self, start: datetime, end: datetime) -> list[Game]:
        """
        Get games kicking off in ``[start, end]`` that have not finished.

        Args:
            start: Earliest kickoff (UTC)
            end: Latest kickoff (UTC)

        Returns:
            Games ordered by kickoff
        """
        query = (
            select(Game)
            .where(
                and_(
                    Game.game_date >= start,
                    Game.game_date <= end,
                    Game.is_completed.is_(False),
                )
            )
            .order_by(Game.game_date)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
