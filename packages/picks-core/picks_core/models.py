"""SQLModel database schema definitions."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class Game(SQLModel, table=True):
    """Scheduled game, including the current odds snapshot."""

    __tablename__ = "games"

    id: str = Field(primary_key=True, description="Game identifier")
    season: int = Field(index=True, description="Season year")
    week: int = Field(index=True, description="Week of the season")

    home_team: str = Field(description="Home team name")
    away_team: str = Field(description="Away team name")
    game_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), index=True), description="Kickoff time"
    )

    is_completed: bool = Field(default=False, description="Whether the game has finished")
    home_score: int | None = Field(default=None, description="Final home team score")
    away_score: int | None = Field(default=None, description="Final away team score")

    # Current odds snapshot, updated in place on each successful refresh
    home_spread: float | None = Field(default=None, description="Home team spread")
    away_spread: float | None = Field(default=None, description="Away team spread")
    home_moneyline: int | None = Field(default=None, description="Home team moneyline")
    away_moneyline: int | None = Field(default=None, description="Away team moneyline")
    over_under: float | None = Field(default=None, description="Game total")
    odds_provider: str | None = Field(default=None, description="Provider of the snapshot")
    odds_updated_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)),
        default=None,
        description="When the snapshot was last refreshed",
    )

    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=utc_now,
        description="Record creation time",
    )
    updated_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=utc_now,
        description="Record last update time",
    )

    __table_args__ = (Index("ix_games_season_week", "season", "week"),)


class OddsHistory(SQLModel, table=True):
    """Append-only record of every observed odds update."""

    __tablename__ = "odds_history"

    id: int | None = Field(default=None, primary_key=True)
    game_id: str = Field(foreign_key="games.id", description="Game reference")

    home_spread: float | None = Field(default=None)
    away_spread: float | None = Field(default=None)
    home_moneyline: int | None = Field(default=None)
    away_moneyline: int | None = Field(default=None)
    over_under: float | None = Field(default=None)
    provider: str = Field(description="Provider that produced the odds")

    timestamp: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=utc_now,
        description="When the update was observed",
    )

    __table_args__ = (Index("ix_odds_history_game_timestamp", "game_id", "timestamp"),)


class CacheRecord(SQLModel, table=True):
    """Persistent tier of the two-tier cache."""

    __tablename__ = "cache_entries"

    key: str = Field(primary_key=True, description="Cache key")
    data: str = Field(sa_column=Column(Text, nullable=False), description="Serialized JSON value")
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), index=True), description="Expiry time"
    )
    version: int = Field(default=1, description="Reserved for optimistic checks")
    tags: str = Field(default="", description="Comma-delimited tag string")
    hit_count: int = Field(default=0, description="Number of reads served")

    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=utc_now,
        description="Record creation time",
    )
    last_accessed_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True)),
        default_factory=utc_now,
        description="Last read or write",
    )
