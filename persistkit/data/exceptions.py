"""
Persistence exceptions.

Expected outcomes (state conflicts, version conflicts, key collisions)
are reported as return values; these exceptions cover configuration
errors and failures that must stop the caller.
"""
from typing import Any, Optional


class PersistenceError(Exception):
    """Base class for persistence errors."""
    pass


class ConfigurationError(PersistenceError):
    """Raised at startup or first use when configuration is invalid."""
    pass


class ConnectionStringError(ConfigurationError):
    """Raised when no usable connection string is available."""
    pass


class UnmappedTypeError(ConfigurationError):
    """Raised when a Python type has no store type mapping."""

    def __init__(self, python_type: Any, property_name: Optional[str] = None):
        self.python_type = python_type
        self.property_name = property_name
        type_name = getattr(python_type, "__name__", None) or repr(python_type)
        self.type_name = type_name
        where = f" (property '{property_name}')" if property_name else ""
        super().__init__(f"No store type mapping for Python type '{type_name}'{where}")


class MapperConfigurationError(ConfigurationError):
    """Raised when a mapper is misconfigured or configured twice."""
    pass


class NoOpenConnectionError(PersistenceError):
    """Raised when a statement is issued without an open connection."""
    pass


class MigrationConfigurationError(ConfigurationError):
    """Raised when migration scripts are malformed or inconsistent."""
    pass


class MigrationError(PersistenceError):
    """
    Raised when a migration script fails.

    Earlier migrations in the batch remain recorded; the failing one
    is not, so a corrected re-run resumes from ``version``.
    """

    def __init__(self, version: int, name: str, direction: str, cause: BaseException):
        self.version = version
        self.name = name
        self.direction = direction
        self.cause = cause
        super().__init__(
            f"Migration {version} ({name}) failed during {direction}: {cause}"
        )


class IrreversibleMigrationError(MigrationError):
    """Raised before a rollback when a selected migration has no down script."""

    def __init__(self, version: int, name: str):
        self.version = version
        self.name = name
        self.direction = "down"
        self.cause = None
        PersistenceError.__init__(
            self, f"Migration {version} ({name}) has no down script and cannot be rolled back"
        )
