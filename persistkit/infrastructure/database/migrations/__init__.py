"""Versioned SQL schema migrations."""

from .loader import DOWN_DIRECTORY, UP_DIRECTORY, load_migrations, split_sql
from .manager import LEDGER_TABLE, MigrationManager
from .models import Migration, MigrationStatus

__all__ = [
    "DOWN_DIRECTORY",
    "LEDGER_TABLE",
    "Migration",
    "MigrationManager",
    "MigrationStatus",
    "UP_DIRECTORY",
    "load_migrations",
    "split_sql",
]
