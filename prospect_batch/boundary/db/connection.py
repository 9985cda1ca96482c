"""
Database connection management.

Provides the async SQLAlchemy engine, session factory, and the FastAPI
dependency for request-scoped sessions.

Dependencies: sqlalchemy, prospect_batch.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from prospect_batch.configs import get_settings


def build_async_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine with connection pooling.

    pool_pre_ping=True verifies connections before use so stale pooled
    connections surface as a reconnect instead of a failed query.

    Args:
        database_url: Override URL (defaults to the configured Postgres URL)

    Returns:
        AsyncEngine: Configured async engine
    """
    db_config = get_settings().database

    return create_async_engine(
        database_url or db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Process-wide async engine for the API.

    Returns:
        AsyncEngine: Shared engine (one pool per process)
    """
    return build_async_engine()


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create a session factory with explicit transaction control.

    Args:
        engine: Engine to bind sessions to

    Returns:
        async_sessionmaker: Factory producing sessions with expire_on_commit=False
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine."""
    return build_session_factory(get_async_engine())


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection.

    One session per request, closed after the route completes even if it
    raised.

    Yields:
        AsyncSession: Request-scoped async session

    Usage:
        @router.get("/batch-jobs/{job_id}")
        async def get_job(job_id: UUID, db: AsyncSession = Depends(get_async_db)):
            return await batch_job_crud.get_for_user(db, job_id, user_id)
    """
    session_factory = get_async_session_factory()
    async with session_factory() as session:
        yield session
