"""Database infrastructure."""

from .config import DatabaseSettings, create_engine, get_database_settings, to_async_url
from .connection import DatabaseConnection
from .lifecycle import close_database, get_engine, init_database
from .migrations import Migration, MigrationManager, MigrationStatus, load_migrations

__all__ = [
    "close_database",
    "create_engine",
    "DatabaseConnection",
    "DatabaseSettings",
    "get_database_settings",
    "get_engine",
    "init_database",
    "load_migrations",
    "Migration",
    "MigrationManager",
    "MigrationStatus",
    "to_async_url",
]
