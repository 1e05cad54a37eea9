"""Timezone helpers for kickoff times and cached timestamps.

Everything stored or cached is UTC. US Eastern is only used for display and
for deciding which calendar day a game belongs to.
"""

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive values as UTC (SQLite drops offsets) and normalize the rest."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp from the feed or a cache entry."""
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(dt: datetime) -> str:
    """Format as ISO 8601 UTC with a ``Z`` suffix, the form the feed uses."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def to_eastern(dt: datetime) -> datetime:
    return ensure_utc(dt).astimezone(EASTERN)


def eastern_date(dt: datetime) -> date:
    """Calendar day of an instant as seen on a US Eastern schedule."""
    return to_eastern(dt).date()


def same_calendar_day(first: datetime, second: datetime) -> bool:
    """
    Return True when both instants fall on the same US Eastern calendar day.

    An 8:20pm ET kickoff is already the next day in UTC, so feed times are
    compared to scheduled times in Eastern.
    """
    return eastern_date(first) == eastern_date(second)


def format_kickoff(dt: datetime) -> str:
    """Human-readable kickoff, e.g. ``Thu Sep 05 08:20 PM ET``."""
    return to_eastern(dt).strftime("%a %b %d %I:%M %p ET")
