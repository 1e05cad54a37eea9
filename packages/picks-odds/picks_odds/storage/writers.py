"""Database write operations for game odds."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from picks_core.api_models import GameOdds
from picks_core.models import Game, OddsHistory
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


class OddsWriter:
    """Handles write operations for odds snapshots and history."""

    def __init__(self, session: AsyncSession):
        """
        Initialize writer with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def upsert_game(self, game: Game) -> Game:
        """
        Insert or update a scheduled game.

        Odds columns on an existing game are left untouched; they are only
        written by :meth:`store_odds`.
        """
        result = await self.session.execute(select(Game).where(Game.id == game.id))
        existing = result.scalar_one_or_none()

        if existing:
            existing.season = game.season
            existing.week = game.week
            existing.home_team = game.home_team
            existing.away_team = game.away_team
            existing.game_date = game.game_date
            existing.is_completed = game.is_completed
            existing.updated_at = datetime.now(UTC)
            logger.info("game_updated", game_id=game.id)
            return existing

        self.session.add(game)
        logger.info("game_created", game_id=game.id)
        return game

    async def store_odds(self, game_id: str, odds: GameOdds) -> OddsHistory | None:
        """
        Update the game's odds snapshot in place and append a history row.

        Args:
            game_id: Our game identifier (not the provider's)
            odds: Freshly fetched odds

        Returns:
            The appended OddsHistory row, or None if the game does not exist
        """
        result = await self.session.execute(select(Game).where(Game.id == game_id))
        game = result.scalar_one_or_none()

        if not game:
            logger.warning("game_not_found", game_id=game_id)
            return None

        now = datetime.now(UTC)
        game.home_spread = odds.home_spread
        game.away_spread = odds.away_spread
        game.home_moneyline = odds.home_moneyline
        game.away_moneyline = odds.away_moneyline
        game.over_under = odds.over_under
        game.odds_provider = odds.provider
        game.odds_updated_at = now
        game.updated_at = now

        history = OddsHistory(
            game_id=game_id,
            home_spread=odds.home_spread,
            away_spread=odds.away_spread,
            home_moneyline=odds.home_moneyline,
            away_moneyline=odds.away_moneyline,
            over_under=odds.over_under,
            provider=odds.provider,
            timestamp=now,
        )
        self.session.add(history)

        logger.info(
            "odds_snapshot_stored",
            game_id=game_id,
            provider=odds.provider,
            home_spread=odds.home_spread,
            over_under=odds.over_under,
        )
        return history
