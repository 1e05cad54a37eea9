"""Database connection and session management."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from picks_core.config import get_settings


def create_engine_for_url(url: str, pool_size: int = 5) -> AsyncEngine:
    """
    Create an async engine with pooling suited to where we run.

    Scheduled jobs started through ``asyncio.run()`` get a fresh event loop
    per invocation, so they use NullPool (set PICKS_NULL_POOL=1). SQLite
    manages its own pool and rejects the sizing arguments.
    """
    if os.getenv("PICKS_NULL_POOL"):
        return create_async_engine(url, echo=False, future=True, poolclass=NullPool)
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False, future=True)
    return create_async_engine(
        url,
        echo=False,
        future=True,
        pool_size=pool_size,
        max_overflow=10,
    )


_settings = get_settings()
engine = create_engine_for_url(_settings.database.url, _settings.database.pool_size)

# Create async session factory
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """
    Initialize database schema.

    Creates all tables defined in SQLModel.
    """
    # Register table metadata before create_all
    import picks_core.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
