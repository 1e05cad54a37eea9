"""Adaptive cache lifetimes based on kickoff proximity.

Lines move faster as kickoff approaches, so odds for imminent games are
cached briefly while odds for games days away can be held for a full day.
"""

from datetime import datetime
from enum import Enum

from picks_core.time import ensure_utc


class FreshnessTier(Enum):
    """
    Cache lifetime buckets keyed on hours until kickoff.

    - IMMINENT: kickoff within the hour (or already started)
    - GAME_DAY: within 6 hours
    - PROXIMITY: within a day
    - UPCOMING: within 3 days
    - DISTANT: more than 3 days out
    """

    IMMINENT = "imminent"  # <= 1 hour: 5 minutes
    GAME_DAY = "game_day"  # <= 6 hours: 15 minutes
    PROXIMITY = "proximity"  # <= 24 hours: 1 hour
    UPCOMING = "upcoming"  # <= 72 hours: 6 hours
    DISTANT = "distant"  # > 72 hours: 24 hours

    @property
    def ttl_seconds(self) -> int:
        """Cache lifetime in seconds for this tier."""
        ttls = {
            FreshnessTier.IMMINENT: 5 * 60,
            FreshnessTier.GAME_DAY: 15 * 60,
            FreshnessTier.PROXIMITY: 60 * 60,
            FreshnessTier.UPCOMING: 6 * 60 * 60,
            FreshnessTier.DISTANT: 24 * 60 * 60,
        }
        return ttls[self]


def calculate_freshness_tier(hours_until: float) -> FreshnessTier:
    """
    Determine the freshness tier for a game ``hours_until`` hours away.

    Each bucket includes its upper bound, so exactly 1.0 hours is IMMINENT.

    Example:
        >>> calculate_freshness_tier(0.5)
        <FreshnessTier.IMMINENT: 'imminent'>

        >>> calculate_freshness_tier(50.0)
        <FreshnessTier.UPCOMING: 'upcoming'>
    """
    if hours_until <= 1:
        return FreshnessTier.IMMINENT
    elif hours_until <= 6:
        return FreshnessTier.GAME_DAY
    elif hours_until <= 24:
        return FreshnessTier.PROXIMITY
    elif hours_until <= 72:
        return FreshnessTier.UPCOMING
    else:
        return FreshnessTier.DISTANT


def calculate_ttl(hours_until: float) -> int:
    """Cache TTL in seconds for a game ``hours_until`` hours away."""
    return calculate_freshness_tier(hours_until).ttl_seconds


def hours_until_game(game_date: datetime, now: datetime) -> float:
    """Hours from ``now`` until kickoff (negative once the game has started)."""
    return (ensure_utc(game_date) - ensure_utc(now)).total_seconds() / 3600
