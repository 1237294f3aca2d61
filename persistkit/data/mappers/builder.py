"""
Mapper configuration builder.

Resolves a row dataclass into an immutable column table once, at
startup, instead of reflecting over the row on every call.
"""
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple, get_type_hints
import re

from ..exceptions import MapperConfigurationError
from ..models import DataModel
from .types import StoreType, resolve_store_type, unwrap_optional

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])|(?<=[A-Z])([A-Z])(?=[a-z])")


def to_snake_case(value: str) -> str:
    """Convert ``LastChangedAt`` / ``lastChangedAt`` to ``last_changed_at``."""
    if not value:
        return value
    return _CAMEL_BOUNDARY.sub(lambda m: "_" + (m.group(1) or m.group(2)), value).lower()


class ColumnRole(str, Enum):
    KEY = "key"
    TENANT = "tenant"
    VERSION = "version"
    ORDINARY = "ordinary"


@dataclass(frozen=True)
class ColumnMap:
    """One mapped property."""

    property_name: str
    column_name: str
    store_type: StoreType
    nullable: bool
    role: ColumnRole = ColumnRole.ORDINARY

    @property
    def is_updatable(self) -> bool:
        """Key and tenant columns never appear in an UPDATE's SET list."""
        return self.role not in (ColumnRole.KEY, ColumnRole.TENANT)


@dataclass(frozen=True)
class MapperConfiguration:
    """Immutable, built-once column table for one row type."""

    data_model_type: type
    table_name: str
    table_schema: Optional[str]
    columns: Tuple[ColumnMap, ...]

    @property
    def qualified_table_name(self) -> str:
        if self.table_schema:
            return f"{self.table_schema}.{self.table_name}"
        return self.table_name

    def column(self, property_name: str) -> ColumnMap:
        for column in self.columns:
            if column.property_name == property_name:
                return column
        raise MapperConfigurationError(
            f"Property '{property_name}' is not mapped for {self.data_model_type.__name__}"
        )

    def column_with_role(self, role: ColumnRole) -> ColumnMap:
        for column in self.columns:
            if column.role is role:
                return column
        raise MapperConfigurationError(
            f"No {role.value} column mapped for {self.data_model_type.__name__}"
        )


# DataModel columns mapped on every row type: (property, role)
_BASE_COLUMNS: Tuple[Tuple[str, ColumnRole], ...] = (
    ("id", ColumnRole.KEY),
    ("tenant_code", ColumnRole.TENANT),
    ("created_by", ColumnRole.ORDINARY),
    ("created_at", ColumnRole.ORDINARY),
    ("last_changed_by", ColumnRole.ORDINARY),
    ("last_changed_at", ColumnRole.ORDINARY),
    ("last_changed_execution_origin", ColumnRole.ORDINARY),
    ("last_changed_correlation_id", ColumnRole.ORDINARY),
    ("last_changed_business_operation_code", ColumnRole.ORDINARY),
    ("entity_version", ColumnRole.VERSION),
)


class MapperBuilder:
    """
    Collects the mapping declarations of one mapper.

    Fields of the row dataclass that are neither mapped nor ignored are
    mapped by convention (snake_case column, type from the annotation)
    when the configuration is built.

    Usage:
        builder.to_table("products", schema="catalog")
        builder.map("unit_price", store_type=StoreType.NUMERIC)
        builder.ignore("cached_label")
    """

    def __init__(self, data_model_type: type):
        if not (is_dataclass(data_model_type) and issubclass(data_model_type, DataModel)):
            raise MapperConfigurationError(
                f"{data_model_type!r} must be a dataclass subclassing DataModel"
            )

        self._data_model_type = data_model_type
        self._hints: Dict[str, Any] = get_type_hints(data_model_type)
        self._field_names = [f.name for f in fields(data_model_type)]
        self._table_name: Optional[str] = None
        self._table_schema: Optional[str] = None
        self._columns: Dict[str, ColumnMap] = {}
        self._ignored: Set[str] = set()

        for property_name, role in _BASE_COLUMNS:
            self._add(property_name, None, None, role)

    def to_table(self, name: str, schema: Optional[str] = None) -> "MapperBuilder":
        if not name or not name.strip():
            raise MapperConfigurationError("Table name must not be empty")
        self._table_name = name.strip()
        self._table_schema = schema.strip() if schema else None
        return self

    def map(
        self,
        property_name: str,
        column_name: Optional[str] = None,
        store_type: Optional[StoreType] = None,
    ) -> "MapperBuilder":
        """
        Map a property explicitly.

        Args:
            property_name: Dataclass field name
            column_name: Store column (defaults to snake_case of the property)
            store_type: Overrides the type table lookup

        Raises:
            MapperConfigurationError: Unknown or already mapped property
            UnmappedTypeError: Annotation type not in the type table
        """
        if property_name in self._columns:
            raise MapperConfigurationError(f"Property '{property_name}' is already mapped")
        self._add(property_name, column_name, store_type, ColumnRole.ORDINARY)
        return self

    def ignore(self, property_name: str) -> "MapperBuilder":
        if property_name not in self._field_names:
            raise MapperConfigurationError(
                f"{self._data_model_type.__name__} has no property '{property_name}'"
            )
        if property_name in self._columns:
            raise MapperConfigurationError(
                f"Property '{property_name}' is mapped and cannot be ignored"
            )
        self._ignored.add(property_name)
        return self

    def build(self) -> MapperConfiguration:
        if self._table_name is None:
            raise MapperConfigurationError(
                f"No table configured for {self._data_model_type.__name__}"
            )

        for property_name in self._field_names:
            if property_name not in self._columns and property_name not in self._ignored:
                self._add(property_name, None, None, ColumnRole.ORDINARY)

        return MapperConfiguration(
            data_model_type=self._data_model_type,
            table_name=self._table_name,
            table_schema=self._table_schema,
            columns=tuple(self._columns.values()),
        )

    def _add(
        self,
        property_name: str,
        column_name: Optional[str],
        store_type: Optional[StoreType],
        role: ColumnRole,
    ) -> None:
        if property_name not in self._field_names:
            raise MapperConfigurationError(
                f"{self._data_model_type.__name__} has no property '{property_name}'"
            )

        python_type, nullable = unwrap_optional(self._hints[property_name])
        if store_type is None:
            store_type = resolve_store_type(python_type, property_name)

        self._columns[property_name] = ColumnMap(
            property_name=property_name,
            column_name=column_name or to_snake_case(property_name),
            store_type=store_type,
            nullable=nullable,
            role=role,
        )
