"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

# Test database URL - in-memory SQLite by default, PostgreSQL via TEST_DATABASE_URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Set required environment variables for testing BEFORE any imports of Settings
os.environ.setdefault("ODDS_API_KEY", "test_api_key")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

from picks_core.models import Game  # noqa: E402


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {}


@pytest.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        **_engine_kwargs(TEST_DATABASE_URL),
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_settings():
    """Mock settings for testing."""
    from picks_core.config import (
        APIConfig,
        CacheConfig,
        DatabaseConfig,
        FreshnessConfig,
        LoggingConfig,
        Settings,
        ThrottleConfig,
    )

    return Settings(
        api=APIConfig(key="test_api_key", base_url="https://api.test.com/v4"),
        database=DatabaseConfig(url=TEST_DATABASE_URL),
        cache=CacheConfig(
            memory_ttl_seconds=300,
            persistent_ttl_seconds=3600,
            max_memory_items=100,
            sweep_interval_seconds=60,
            persistent_timeout_seconds=2,
        ),
        freshness=FreshnessConfig(provider_timeout_seconds=2, warm_delay_seconds=0),
        throttle=ThrottleConfig(),
        logging=LoggingConfig(level="DEBUG", file="logs/test.log"),
    )


@pytest.fixture
def game_factory(session_factory):
    """
    Factory inserting games into the test database.

    Kickoff is given relative to now; ``with_snapshot`` stores an existing
    odds snapshot as if a refresh had succeeded two hours ago.
    """

    async def _create(
        game_id: str = "game-1",
        *,
        home_team: str = "Kansas City Chiefs",
        away_team: str = "Baltimore Ravens",
        kickoff_in: timedelta = timedelta(hours=50),
        season: int = 2024,
        week: int = 1,
        is_completed: bool = False,
        with_snapshot: bool = False,
    ) -> Game:
        now = datetime.now(UTC)
        game = Game(
            id=game_id,
            season=season,
            week=week,
            home_team=home_team,
            away_team=away_team,
            game_date=now + kickoff_in,
            is_completed=is_completed,
        )
        if with_snapshot:
            game.home_spread = -3.0
            game.away_spread = 3.0
            game.home_moneyline = -150
            game.away_moneyline = 130
            game.over_under = 46.5
            game.odds_provider = "The Odds API"
            game.odds_updated_at = now - timedelta(hours=2)

        async with session_factory() as session:
            session.add(game)
            await session.commit()
        return game

    return _create
