"""Domain layer - execution context, identifiers and interfaces."""

from .enums import LifecycleOutcome, MessageSeverity
from .repositories import IDataModelRepository
from .value_objects import (
    Diagnostic,
    ExecutionContext,
    IdEncodingError,
    Pagination,
    hex_id_to_uuid,
    uuid_to_hex_id,
)

__all__ = [
    "Diagnostic",
    "ExecutionContext",
    "IdEncodingError",
    "IDataModelRepository",
    "LifecycleOutcome",
    "MessageSeverity",
    "Pagination",
    "hex_id_to_uuid",
    "uuid_to_hex_id",
]
