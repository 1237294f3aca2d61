"""
Data layer: row models, mappers, unit of work and repositories.
"""

from .exceptions import (
    ConfigurationError,
    ConnectionStringError,
    IrreversibleMigrationError,
    MapperConfigurationError,
    MigrationConfigurationError,
    MigrationError,
    NoOpenConnectionError,
    PersistenceError,
    UnmappedTypeError,
)
from .models import DataModel
from .mappers import DataModelMapper, MapperBuilder, MapperRegistry, StoreType
from .uow import UnitOfWork, UnitOfWorkState, create_uow
from .repositories import DataModelRepository

__all__ = [
    "ConfigurationError",
    "ConnectionStringError",
    "DataModel",
    "DataModelMapper",
    "DataModelRepository",
    "IrreversibleMigrationError",
    "MapperBuilder",
    "MapperConfigurationError",
    "MapperRegistry",
    "MigrationConfigurationError",
    "MigrationError",
    "NoOpenConnectionError",
    "PersistenceError",
    "StoreType",
    "UnitOfWork",
    "UnitOfWorkState",
    "UnmappedTypeError",
    "create_uow",
]
