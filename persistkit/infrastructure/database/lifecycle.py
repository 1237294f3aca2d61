"""Database Lifecycle Management - process engine."""

from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from persistkit.infrastructure.database.config import (
    DatabaseSettings,
    create_engine,
    get_database_settings,
)


logger = logging.getLogger(__name__)

_async_engine: Optional[AsyncEngine] = None


async def init_database(
    connection_string: Optional[str] = None,
    settings: Optional[DatabaseSettings] = None,
) -> AsyncEngine:
    """
    Initialize the process-wide async engine.

    Idempotent: a second call returns the existing engine.

    Args:
        connection_string: Resolved URL; taken from settings when omitted
        settings: Database settings (defaults to environment)

    Returns:
        The process engine

    Raises:
        ConnectionStringError: If no connection string can be resolved
    """
    global _async_engine

    if _async_engine is not None:
        return _async_engine

    settings = settings or get_database_settings()
    if connection_string is None:
        connection_string = settings.resolve_connection_string()

    _async_engine = create_engine(connection_string, settings)
    logger.info("✅ Database engine initialized")
    return _async_engine


def get_engine() -> AsyncEngine:
    """Get the process engine."""
    if _async_engine is None:
        raise RuntimeError(
            "Database not initialized. Call init_database() first."
        )
    return _async_engine


async def close_database() -> None:
    """Dispose the process engine and its pooled connections."""
    global _async_engine

    if _async_engine is not None:
        logger.info("Closing database connections...")
        await _async_engine.dispose()
        logger.info("✅ Database connections closed")

    _async_engine = None
