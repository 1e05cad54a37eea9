"""
Refresh odds job - update every open game in an NFL week.

This job:
1. Resolves the target weeks (explicit, or those the scheduler finds due)
2. Issues a single bulk fetch per week through the freshness service
3. Writes snapshots, history rows and cache entries for matched games

Running the module executes the scheduled variant; invoke it every couple of
minutes and it only calls upstream when a week is due.
"""

import asyncio
from datetime import UTC, datetime

import structlog
from picks_core.config import get_settings
from picks_core.logging_setup import configure_logging

from picks_odds.runtime import freshness_runtime
from picks_odds.scheduling import RefreshScheduler
from picks_odds.service import BatchRefreshResult

logger = structlog.get_logger()

SEASON_START_MONTH = 9
REGULAR_SEASON_WEEKS = 18


def current_nfl_week(now: datetime) -> tuple[int, int]:
    """
    Estimate the NFL ``(season, week)`` for a moment in time.

    Seasons start September 1; January through August belong to the previous
    season. Weeks are counted in 7-day blocks from the season start and
    clamped to the regular season.

    Example:
        >>> current_nfl_week(datetime(2024, 9, 10, tzinfo=UTC))
        (2024, 2)
    """
    season = now.year if now.month >= SEASON_START_MONTH else now.year - 1
    season_start = datetime(season, SEASON_START_MONTH, 1, tzinfo=UTC)
    days = (now.astimezone(UTC) - season_start).days
    week = days // 7 + 1
    return season, max(1, min(REGULAR_SEASON_WEEKS, week))


async def main(season: int | None = None, week: int | None = None) -> BatchRefreshResult:
    """
    Main job execution flow.

    Args:
        season: Season year (defaults to the current season)
        week: Week number (defaults to the current week)
    """
    if season is None or week is None:
        current_season, current_week = current_nfl_week(datetime.now(UTC))
        season = current_season if season is None else season
        week = current_week if week is None else week

    logger.info("refresh_odds_job_started", season=season, week=week)

    try:
        async with freshness_runtime(get_settings()) as service:
            result = await service.refresh_batch(season, week)
    except Exception as e:
        logger.error("refresh_odds_job_failed", error=str(e), exc_info=True)
        raise

    for error in result.errors:
        logger.warning("refresh_odds_game_error", error=error)

    logger.info(
        "refresh_odds_job_completed",
        season=season,
        week=week,
        updated=result.updated_count,
        errors=len(result.errors),
    )
    return result


async def run_scheduled(now: datetime | None = None) -> list[BatchRefreshResult]:
    """
    Refresh only the weeks whose games are due for their cadence.

    Returns:
        One result per refreshed week; empty when nothing was due
    """
    settings = get_settings()
    scheduler = RefreshScheduler(lookahead_days=settings.freshness.schedule_lookahead_days)
    decision = await scheduler.decide(now)

    if not decision.should_refresh:
        logger.info(
            "refresh_odds_job_skipped",
            reason=decision.reason,
            next_check=decision.next_check.isoformat(),
        )
        return []

    results: list[BatchRefreshResult] = []
    async with freshness_runtime(settings) as service:
        for season, week in decision.weeks:
            result = await service.refresh_batch(season, week)
            for error in result.errors:
                logger.warning("refresh_odds_game_error", season=season, week=week, error=error)
            results.append(result)

    logger.info(
        "refresh_odds_scheduled_completed",
        weeks=list(decision.weeks),
        cadence=decision.cadence.value if decision.cadence else None,
        updated=sum(r.updated_count for r in results),
        next_check=decision.next_check.isoformat(),
    )
    return results


if __name__ == "__main__":
    configure_logging(get_settings(), json_output=True)
    asyncio.run(run_scheduled())
