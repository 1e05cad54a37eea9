"""Kickoff-aware refresh scheduling.

The refresh job is invoked on a short fixed timer; this module decides on each
invocation whether any week is actually due, so refreshes speed up as games
approach and stop when nothing is scheduled.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog
from picks_core.database import async_session_maker
from picks_core.models import Game
from picks_core.time import ensure_utc

from picks_odds.freshness import hours_until_game
from picks_odds.storage import GameReader

logger = structlog.get_logger(__name__)

LIVE_WINDOW_HOURS = 6
GAME_DAY_HOURS = 2
PROXIMITY_HOURS = 24


class RefreshCadence(Enum):
    """
    How often a game's odds should be refreshed.

    - LIVE: kicked off within the last 6 hours and not completed
    - GAME_DAY: kickoff within 2 hours
    - PROXIMITY: kickoff within 24 hours
    - DEFAULT: anything further out
    """

    LIVE = "live"  # every 2 minutes
    GAME_DAY = "game_day"  # every 5 minutes
    PROXIMITY = "proximity"  # every 15 minutes
    DEFAULT = "default"  # every hour

    @property
    def interval_minutes(self) -> int:
        intervals = {
            RefreshCadence.LIVE: 2,
            RefreshCadence.GAME_DAY: 5,
            RefreshCadence.PROXIMITY: 15,
            RefreshCadence.DEFAULT: 60,
        }
        return intervals[self]

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)


def calculate_cadence(hours_until: float) -> RefreshCadence | None:
    """
    Refresh cadence for a game ``hours_until`` hours from kickoff.

    Returns None once the game is more than 6 hours past kickoff.

    Example:
        >>> calculate_cadence(1.5)
        <RefreshCadence.GAME_DAY: 'game_day'>
    """
    if hours_until < -LIVE_WINDOW_HOURS:
        return None
    elif hours_until <= 0:
        return RefreshCadence.LIVE
    elif hours_until <= GAME_DAY_HOURS:
        return RefreshCadence.GAME_DAY
    elif hours_until <= PROXIMITY_HOURS:
        return RefreshCadence.PROXIMITY
    else:
        return RefreshCadence.DEFAULT


@dataclass(slots=True, frozen=True)
class RefreshDecision:
    """
    Whether the refresh job should run now (immutable).

    Attributes:
        should_refresh: Whether any week is due
        reason: Human-readable explanation
        next_check: When the schedule should next be evaluated
        cadence: Most urgent cadence among upcoming games
        weeks: ``(season, week)`` pairs to refresh, oldest first
    """

    should_refresh: bool
    reason: str
    next_check: datetime
    cadence: RefreshCadence | None
    weeks: tuple[tuple[int, int], ...] = ()


def decide_refresh(games: Iterable[Game], now: datetime) -> RefreshDecision:
    """
    Decide which weeks are due given their games' kickoffs and last refresh.

    A game is due when its snapshot is older than its cadence interval (or it
    has never had odds). Every week containing a due game is refreshed.
    """
    now = ensure_utc(now)
    most_urgent: RefreshCadence | None = None
    due_weeks: set[tuple[int, int]] = set()

    for game in games:
        if game.is_completed:
            continue
        cadence = calculate_cadence(hours_until_game(game.game_date, now))
        if cadence is None:
            continue
        if most_urgent is None or cadence.interval < most_urgent.interval:
            most_urgent = cadence

        last = game.odds_updated_at
        if last is None or now - ensure_utc(last) >= cadence.interval:
            due_weeks.add((game.season, game.week))

    if most_urgent is None:
        return RefreshDecision(
            should_refresh=False,
            reason="No upcoming games scheduled",
            next_check=now + RefreshCadence.DEFAULT.interval,
            cadence=None,
        )

    next_check = now + most_urgent.interval
    if not due_weeks:
        return RefreshDecision(
            should_refresh=False,
            reason=f"Odds are current ({most_urgent.value} cadence)",
            next_check=next_check,
            cadence=most_urgent,
        )

    weeks = tuple(sorted(due_weeks))
    return RefreshDecision(
        should_refresh=True,
        reason=f"{len(weeks)} week(s) due ({most_urgent.value} cadence)",
        next_check=next_check,
        cadence=most_urgent,
        weeks=weeks,
    )


class RefreshScheduler:
    """Reads upcoming games and decides whether a refresh is due."""

    def __init__(self, lookahead_days: int = 7, session_factory=None):
        """
        Args:
            lookahead_days: How many days ahead to consider games
            session_factory: Optional session factory for testing (defaults to async_session_maker)
        """
        self.lookahead_days = lookahead_days
        self.session_factory = session_factory or async_session_maker

    async def decide(self, now: datetime | None = None) -> RefreshDecision:
        now = ensure_utc(now or datetime.now(UTC))
        async with self.session_factory() as session:
            games = await GameReader(session).get_unfinished_games_between(
                now - timedelta(hours=LIVE_WINDOW_HOURS),
                now + timedelta(days=self.lookahead_days),
            )

        decision = decide_refresh(games, now)
        logger.info(
            "refresh_schedule_decided",
            should_refresh=decision.should_refresh,
            reason=decision.reason,
            games=len(games),
            weeks=list(decision.weeks),
            next_check=decision.next_check.isoformat(),
        )
        return decision
