"""
Data model mapper.

Declarative, configure-once translation between a row dataclass and
its store columns. Every SQL string the repository issues is generated
here once, at configuration time, and every statement is tenant-scoped.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar
import logging
import re

from sqlalchemy import BigInteger, bindparam, column, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.selectable import TextualSelect

from persistkit.domain.value_objects import Pagination

from ..exceptions import MapperConfigurationError
from ..models import DataModel
from .builder import ColumnMap, ColumnRole, MapperBuilder, MapperConfiguration
from .clauses import OrderByClause, RelationalOperator, SortDirection, WhereClause
from .types import StoreType, sqlalchemy_type


logger = logging.getLogger(__name__)

TDataModel = TypeVar("TDataModel", bound=DataModel)

# Same rule SQLAlchemy's text() uses to find bind parameters
_BIND_PARAMETER = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")

# Parameter used for the stored version an update/delete expects
EXPECTED_VERSION_PARAMETER = "expected__entity_version"


class DataModelMapper(ABC, Generic[TDataModel]):
    """
    Base class for row mappers.

    Subclasses set ``data_model_type`` and implement ``configure``.
    Configuration runs exactly once, when the mapper is constructed.

    Usage:
        class ProductMapper(DataModelMapper[ProductDataModel]):
            data_model_type = ProductDataModel

            def configure(self, builder: MapperBuilder) -> None:
                builder.to_table("products")
                builder.map("price", store_type=StoreType.NUMERIC)
    """

    data_model_type: ClassVar[type]

    def __init__(self) -> None:
        self._configuration: Optional[MapperConfiguration] = None
        self.initialize()

    @abstractmethod
    def configure(self, builder: MapperBuilder) -> None:
        """Declare the table and any non-conventional columns."""
        pass

    def initialize(self) -> MapperConfiguration:
        """
        Build the column table and cache the generated SQL.

        Raises:
            MapperConfigurationError: If already configured or invalid
            UnmappedTypeError: If a property type has no store mapping
        """
        if self._configuration is not None:
            raise MapperConfigurationError(
                f"{type(self).__name__} is already configured; mappings are built once"
            )

        data_model_type = getattr(type(self), "data_model_type", None)
        if data_model_type is None:
            raise MapperConfigurationError(f"{type(self).__name__} does not declare data_model_type")

        builder = MapperBuilder(data_model_type)
        self.configure(builder)
        configuration = builder.build()

        self._cache_generated_sql(configuration)
        self._configuration = configuration

        logger.debug(
            f"Configured mapper {type(self).__name__} -> {configuration.qualified_table_name} "
            f"({len(configuration.columns)} columns)"
        )
        return configuration

    # ------------------------------------------------------------------
    # Table / column info
    # ------------------------------------------------------------------

    @property
    def configuration(self) -> MapperConfiguration:
        if self._configuration is None:
            raise MapperConfigurationError(f"{type(self).__name__} is not configured")
        return self._configuration

    @property
    def table_name(self) -> str:
        return self.configuration.table_name

    @property
    def table_schema(self) -> Optional[str]:
        return self.configuration.table_schema

    @property
    def qualified_table_name(self) -> str:
        return self.configuration.qualified_table_name

    @property
    def columns(self) -> Tuple[ColumnMap, ...]:
        return self.configuration.columns

    def column(self, property_name: str) -> ColumnMap:
        return self.configuration.column(property_name)

    def column_name(self, property_name: str) -> str:
        return self.column(property_name).column_name

    @property
    def copy_columns(self) -> List[str]:
        """Column names in bulk-encode order."""
        return [c.column_name for c in self.columns]

    # ------------------------------------------------------------------
    # Cached commands
    # ------------------------------------------------------------------

    @property
    def select_command(self) -> str:
        return self._select_command

    @property
    def insert_command(self) -> str:
        return self._insert_command

    @property
    def update_command(self) -> str:
        return self._update_command

    @property
    def delete_command(self) -> str:
        return self._delete_command

    @property
    def copy_command(self) -> str:
        return self._copy_command

    # ------------------------------------------------------------------
    # Clause builders
    # ------------------------------------------------------------------

    def parameter_name(self, property_name: str, alias: Optional[str] = None) -> str:
        """
        Bind parameter name for a property.

        ``alias`` distinguishes a second parameter on the same column,
        e.g. ``expected__entity_version``.
        """
        self.column(property_name)
        if alias:
            return f"{alias}__{property_name}"
        return property_name

    def where(
        self,
        property_name: str,
        operator: RelationalOperator = RelationalOperator.EQUAL,
        alias: Optional[str] = None,
    ) -> WhereClause:
        column_map = self.column(property_name)
        parameter = self.parameter_name(property_name, alias)
        return WhereClause(
            f"{self.qualified_table_name}.{column_map.column_name} {operator.value} :{parameter}"
        )

    def order_by(
        self,
        property_name: str,
        direction: SortDirection = SortDirection.ASCENDING,
    ) -> OrderByClause:
        column_map = self.column(property_name)
        return OrderByClause(
            f"{self.qualified_table_name}.{column_map.column_name} {direction.value}"
        )

    def order_by_ascending(self, property_name: str) -> OrderByClause:
        return self.order_by(property_name, SortDirection.ASCENDING)

    def order_by_descending(self, property_name: str) -> OrderByClause:
        return self.order_by(property_name, SortDirection.DESCENDING)

    # ------------------------------------------------------------------
    # Command generation
    # ------------------------------------------------------------------

    def generate_select_command(
        self,
        where: Optional[WhereClause] = None,
        order_by: Optional[OrderByClause] = None,
        pagination: Optional[Pagination] = None,
    ) -> str:
        """
        Build a tenant-scoped SELECT.

        Paged selects without an explicit order are ordered by key so
        pages are stable.
        """
        command = self._select_command
        if where is not None:
            command += f" AND ({where.value})"
        if order_by is None and pagination is not None and not pagination.is_unbounded:
            order_by = self.order_by_ascending(self._key.property_name)
        if order_by is not None:
            command += f" ORDER BY {order_by.value}"
        if pagination is not None and not pagination.is_unbounded:
            command += f" LIMIT {int(pagination.page_size)} OFFSET {int(pagination.offset)}"
        return command

    def generate_update_command(self, where: WhereClause) -> str:
        return f"{self._update_command} AND ({where.value})"

    def generate_delete_command(self, where: WhereClause) -> str:
        return f"{self._delete_base_command} AND ({where.value})"

    def generate_exists_command(self, where: WhereClause) -> str:
        return (
            f"SELECT EXISTS (SELECT 1 FROM {self.qualified_table_name} "
            f"WHERE {self._tenant_predicate} AND ({where.value}))"
        )

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def statement(self, command: str) -> TextClause:
        """Wrap a command with typed bind parameters."""
        names = dict.fromkeys(_BIND_PARAMETER.findall(command))
        return text(command).bindparams(
            *[bindparam(name, type_=self._parameter_type(name)) for name in names]
        )

    def select_statement(self, command: str) -> TextualSelect:
        """Wrap a SELECT with typed bind parameters and typed result columns."""
        return self.statement(command).columns(
            *[column(c.property_name, sqlalchemy_type(c.store_type)) for c in self.columns]
        )

    def _parameter_type(self, name: str):
        if name == EXPECTED_VERSION_PARAMETER:
            return BigInteger()
        property_name = name.split("__", 1)[1] if "__" in name else name
        try:
            return sqlalchemy_type(self.column(property_name).store_type)
        except MapperConfigurationError:
            raise MapperConfigurationError(
                f"Bind parameter ':{name}' does not match a mapped property"
            ) from None

    # ------------------------------------------------------------------
    # Row handling
    # ------------------------------------------------------------------

    def bind_value(self, property_name: str, value: Any) -> Any:
        """Normalise a value for binding against a property's column."""
        return _to_store(self.column(property_name).store_type, value)

    def to_parameters(self, row: TDataModel) -> Dict[str, Any]:
        """All mapped properties of a row as bind parameters."""
        return {
            c.property_name: _to_store(c.store_type, getattr(row, c.property_name))
            for c in self.columns
        }

    def from_row(self, mapping: Mapping[str, Any]) -> TDataModel:
        """Hydrate a row from a result mapping keyed by property name."""
        values = {
            c.property_name: _from_store(c.store_type, mapping[c.property_name])
            for c in self.columns
        }
        return self.configuration.data_model_type(**values)

    def encode_records(self, rows: Iterable[TDataModel]) -> Iterator[Tuple[Any, ...]]:
        """
        Encode rows for a binary COPY, one tuple per row in copy_columns order.

        Lazy: rows are encoded as the consumer pulls them.
        """
        columns = self.columns
        for row in rows:
            yield tuple(_to_store(c.store_type, getattr(row, c.property_name)) for c in columns)

    # ------------------------------------------------------------------
    # Caching
    # ------------------------------------------------------------------

    def _cache_generated_sql(self, configuration: MapperConfiguration) -> None:
        table = configuration.qualified_table_name
        columns = configuration.columns

        self._key = configuration.column_with_role(ColumnRole.KEY)
        tenant = configuration.column_with_role(ColumnRole.TENANT)
        version = configuration.column_with_role(ColumnRole.VERSION)

        column_names = ", ".join(c.column_name for c in columns)
        column_aliases = ", ".join(
            f'{table}.{c.column_name} AS "{c.property_name}"' for c in columns
        )
        parameters = ", ".join(f":{c.property_name}" for c in columns)
        set_clauses = ", ".join(
            f"{c.column_name} = :{c.property_name}" for c in columns if c.is_updatable
        )

        self._tenant_predicate = f"{table}.{tenant.column_name} = :{tenant.property_name}"
        key_predicate = f"{table}.{self._key.column_name} = :{self._key.property_name}"
        expected_version_predicate = (
            f"{table}.{version.column_name} = :{EXPECTED_VERSION_PARAMETER}"
        )
        # New version must be greater than the stored one
        increasing_version_predicate = (
            f"{table}.{version.column_name} < :{version.property_name}"
        )

        self._select_command = (
            f"SELECT {column_aliases} FROM {table} WHERE {self._tenant_predicate}"
        )
        self._insert_command = f"INSERT INTO {table} ({column_names}) VALUES ({parameters})"
        self._update_command = (
            f"UPDATE {table} SET {set_clauses} WHERE {self._tenant_predicate} "
            f"AND {key_predicate} AND {expected_version_predicate} "
            f"AND {increasing_version_predicate}"
        )
        self._delete_base_command = f"DELETE FROM {table} WHERE {self._tenant_predicate}"
        self._delete_command = (
            f"{self._delete_base_command} AND {key_predicate} AND {expected_version_predicate}"
        )
        self._copy_command = f"COPY {table} ({column_names}) FROM STDIN (FORMAT BINARY)"


def _to_store(store_type: StoreType, value: Any) -> Any:
    if value is None:
        return None
    if store_type is StoreType.TIMESTAMPTZ and isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def _from_store(store_type: StoreType, value: Any) -> Any:
    if value is None:
        return None
    # Stores without a zone-aware type hand back naive UTC values
    if store_type is StoreType.TIMESTAMPTZ and isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
