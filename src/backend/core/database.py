"""
Database configuration.
Creates the async engine and session factory, and provides the request-scoped
session dependency plus startup/shutdown helpers.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import PendingRollbackError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from .config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs() -> dict:
    """Build engine keyword arguments for the configured backend."""
    kwargs = {
        "echo": bool(settings.database.echo or settings.logging.enable_query_logging),
        "future": True,
    }
    if settings.database.is_sqlite:
        # SQLite runs through aiosqlite with its default pool
        return kwargs

    kwargs.update(
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        pool_timeout=settings.database.pool_timeout,
        pool_recycle=settings.database.pool_recycle,
    )
    if settings.database.is_postgres:
        kwargs["connect_args"] = {
            "server_settings": {"application_name": settings.api.app_name},
            "command_timeout": 60,
            "timeout": 30,
        }
    return kwargs


engine: AsyncEngine = create_async_engine(settings.database.url, **_engine_kwargs())

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Prevent additional queries after commit
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.
    Commits on success, rolls back when the request raised.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            if session.in_transaction():
                try:
                    await session.commit()
                except PendingRollbackError:
                    await session.rollback()
                    raise
        except Exception:
            await session.rollback()
            raise


async def check_database() -> bool:
    """Run a trivial query to verify connectivity."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        return False
    return True


async def init_db() -> None:
    """
    Initialize database tables.
    Should be called on application startup. Existing tables are left alone.
    """
    # Register table metadata before create_all
    import db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ensured")


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
