"""
Database configuration.

Manages database connection settings and engine creation.
"""
from functools import lru_cache
from typing import Any, Dict, Optional
import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from persistkit.data.exceptions import ConnectionStringError


logger = logging.getLogger(__name__)

# Sync driver names are upgraded to their async counterparts
_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


class DatabaseSettings(BaseSettings):
    """
    Database configuration settings.

    Loaded from environment variables (prefix ``DB_``) or a .env file.
    """

    # Database URL; resolved by the host application
    database_url: str = ""

    # Connection pool settings (ignored for SQLite)
    pool_size: int = Field(10, ge=1)
    max_overflow: int = Field(20, ge=0)
    pool_timeout: int = Field(30, ge=1)
    pool_recycle: int = 3600  # 1 hour

    # Echo SQL (for debugging)
    echo_sql: bool = False

    # Directory holding Up/ and Down/ migration scripts
    migrations_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DB_",
        extra="ignore",
    )

    def resolve_connection_string(self) -> str:
        """
        Return the configured connection string.

        Raises:
            ConnectionStringError: If no connection string is configured
        """
        if not self.database_url or not self.database_url.strip():
            raise ConnectionStringError(
                "No connection string configured (set DB_DATABASE_URL)"
            )
        return self.database_url.strip()


@lru_cache()
def get_database_settings() -> DatabaseSettings:
    return DatabaseSettings()


# =============================================================================
# ENGINE CREATION
# =============================================================================

def to_async_url(connection_string: str) -> URL:
    """
    Parse a connection string and select an async driver.

    Args:
        connection_string: SQLAlchemy-style database URL

    Returns:
        URL using an async driver

    Raises:
        ConnectionStringError: If the string is empty or unparseable
    """
    if not connection_string or not connection_string.strip():
        raise ConnectionStringError("Connection string is empty")

    try:
        url = make_url(connection_string.strip())
    except ArgumentError as e:
        raise ConnectionStringError(f"Invalid connection string: {e}") from e

    async_driver = _ASYNC_DRIVERS.get(url.drivername)
    if async_driver is not None:
        url = url.set(drivername=async_driver)

    return url


def create_engine(
    connection_string: str,
    settings: Optional[DatabaseSettings] = None,
) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    The engine's pool is the only place physical links are reused;
    every DatabaseConnection checks one out and returns it on close.

    Args:
        connection_string: Resolved database URL
        settings: Pool and echo settings (defaults to environment)

    Returns:
        Configured async engine
    """
    settings = settings or get_database_settings()
    url = to_async_url(connection_string)

    logger.info(f"Creating database engine: {url.render_as_string(hide_password=True)}")

    kwargs: Dict[str, Any] = {"echo": settings.echo_sql}
    if url.get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=True,  # Test connections before using
        )

    return create_async_engine(url, **kwargs)
