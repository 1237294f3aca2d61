"""
Store type mapping.

A fixed, closed lookup table from Python types to store type tags.
Extending it is a code change, never a runtime one.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType, NoneType, UnionType
from typing import Any, Mapping, NewType, Tuple, Union, get_args, get_origin
from uuid import UUID

from sqlalchemy import (
    REAL,
    BigInteger,
    Boolean,
    DateTime,
    Double,
    Integer,
    Numeric,
    SmallInteger,
    Text,
    Uuid,
)
from sqlalchemy.types import TypeEngine

from ..exceptions import UnmappedTypeError

# Width markers for Python types that have no narrower builtin
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Float32 = NewType("Float32", float)
NaiveDateTime = NewType("NaiveDateTime", datetime)


class StoreType(str, Enum):
    """Store type tags (PostgreSQL names)."""

    UUID = "uuid"
    TEXT = "text"
    TIMESTAMPTZ = "timestamptz"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"
    SMALLINT = "smallint"
    INTEGER = "integer"
    BIGINT = "bigint"
    DOUBLE = "double precision"
    REAL = "real"
    NUMERIC = "numeric"


PYTHON_TYPE_MAP: Mapping[Any, StoreType] = MappingProxyType({
    UUID: StoreType.UUID,
    str: StoreType.TEXT,
    datetime: StoreType.TIMESTAMPTZ,
    NaiveDateTime: StoreType.TIMESTAMP,
    bool: StoreType.BOOLEAN,
    Int16: StoreType.SMALLINT,
    Int32: StoreType.INTEGER,
    int: StoreType.BIGINT,
    float: StoreType.DOUBLE,
    Float32: StoreType.REAL,
    Decimal: StoreType.NUMERIC,
})

_SQLALCHEMY_TYPES: Mapping[StoreType, TypeEngine] = MappingProxyType({
    StoreType.UUID: Uuid(as_uuid=True),
    StoreType.TEXT: Text(),
    StoreType.TIMESTAMPTZ: DateTime(timezone=True),
    StoreType.TIMESTAMP: DateTime(timezone=False),
    StoreType.BOOLEAN: Boolean(),
    StoreType.SMALLINT: SmallInteger(),
    StoreType.INTEGER: Integer(),
    StoreType.BIGINT: BigInteger(),
    StoreType.DOUBLE: Double(),
    StoreType.REAL: REAL(),
    StoreType.NUMERIC: Numeric(asdecimal=True),
})


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """
    Strip ``Optional[...]`` / ``X | None`` from an annotation.

    Returns:
        (inner type, nullable)
    """
    origin = get_origin(annotation)
    if origin is Union or origin is UnionType:
        args = [a for a in get_args(annotation) if a is not NoneType]
        nullable = len(args) < len(get_args(annotation))
        if len(args) == 1:
            return args[0], nullable
        # Multi-type unions have no single store type; lookup will fail on it
        return annotation, nullable
    return annotation, False


def resolve_store_type(python_type: Any, property_name: str | None = None) -> StoreType:
    """
    Look up the store type for a Python type.

    Args:
        python_type: A key of PYTHON_TYPE_MAP (Optional is not unwrapped here)
        property_name: Included in the error message when given

    Returns:
        Store type tag

    Raises:
        UnmappedTypeError: If the type is not in the table
    """
    try:
        return PYTHON_TYPE_MAP[python_type]
    except (KeyError, TypeError):
        raise UnmappedTypeError(python_type, property_name) from None


def sqlalchemy_type(store_type: StoreType) -> TypeEngine:
    """SQLAlchemy type used to bind and read a store type."""
    return _SQLALCHEMY_TYPES[store_type]
