"""Row mappers, type table and SQL clause builders."""

from .builder import ColumnMap, ColumnRole, MapperBuilder, MapperConfiguration, to_snake_case
from .clauses import OrderByClause, RelationalOperator, SortDirection, WhereClause
from .data_model_mapper import EXPECTED_VERSION_PARAMETER, DataModelMapper
from .registry import MapperRegistry
from .types import (
    PYTHON_TYPE_MAP,
    Float32,
    Int16,
    Int32,
    NaiveDateTime,
    StoreType,
    resolve_store_type,
    sqlalchemy_type,
)

__all__ = [
    "ColumnMap",
    "ColumnRole",
    "DataModelMapper",
    "EXPECTED_VERSION_PARAMETER",
    "Float32",
    "Int16",
    "Int32",
    "MapperBuilder",
    "MapperConfiguration",
    "MapperRegistry",
    "NaiveDateTime",
    "OrderByClause",
    "PYTHON_TYPE_MAP",
    "RelationalOperator",
    "SortDirection",
    "StoreType",
    "WhereClause",
    "resolve_store_type",
    "sqlalchemy_type",
    "to_snake_case",
]
