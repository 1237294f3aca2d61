"""
Data model repository implementation.

Implements IDataModelRepository by composing a DataModelMapper (what SQL
to issue) with a UnitOfWork (where to issue it). The repository never
opens, commits or closes anything itself.
"""
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Generic, Iterable, Iterator, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError

from persistkit.application.interfaces import IUnitOfWork
from persistkit.domain.enums import MessageSeverity
from persistkit.domain.repositories import IDataModelRepository
from persistkit.domain.value_objects import ExecutionContext, Pagination

from ..exceptions import NoOpenConnectionError
from ..mappers import (
    EXPECTED_VERSION_PARAMETER,
    ColumnRole,
    DataModelMapper,
    RelationalOperator,
)
from ..mappers.data_model_mapper import TDataModel


logger = logging.getLogger(__name__)

TENANT_MISMATCH = "TENANT_MISMATCH"
DUPLICATE_KEY = "DUPLICATE_KEY"
CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"

UNIQUE_VIOLATION_SQLSTATE = "23505"

_SINCE_ALIAS = "since"


class DataModelRepository(IDataModelRepository[TDataModel], Generic[TDataModel]):
    """
    Generic tenant-scoped repository for one row type.

    Every statement carries the tenant predicate bound to
    ``context.tenant_code``.
    """

    def __init__(self, mapper: DataModelMapper[TDataModel], uow: IUnitOfWork):
        """
        Initialize repository.

        Args:
            mapper: Configured mapper for the row type
            uow: Unit of work supplying the connection and transaction
        """
        self.mapper = mapper
        self.uow = uow

        key = mapper.configuration.column_with_role(ColumnRole.KEY).property_name
        self._key_property = key
        self._get_by_id_command = mapper.generate_select_command(where=mapper.where(key))
        self._exists_command = mapper.generate_exists_command(mapper.where(key))
        self._modified_since_command = mapper.generate_select_command(
            where=mapper.where(
                "last_changed_at", RelationalOperator.GREATER_THAN_OR_EQUAL, alias=_SINCE_ALIAS
            ),
            order_by=mapper.order_by_ascending("last_changed_at"),
        )

    def _tenant_parameters(self, context: ExecutionContext, **values: Any) -> Dict[str, Any]:
        parameters = {"tenant_code": context.tenant_code}
        for name, value in values.items():
            property_name = name.split("__", 1)[1] if "__" in name else name
            parameters[name] = self.mapper.bind_value(property_name, value)
        return parameters

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(
        self, context: ExecutionContext, entity_id: UUID
    ) -> Optional[TDataModel]:
        """
        Get row by ID.

        Args:
            context: Execution context (supplies the tenant)
            entity_id: Row ID to lookup

        Returns:
            Row if found in this tenant, None otherwise
        """
        result = await self.uow.run(
            self.mapper.select_statement(self._get_by_id_command),
            self._tenant_parameters(context, **{self._key_property: entity_id}),
        )
        mapping = result.mappings().first()
        if mapping is None:
            logger.debug(f"{self.mapper.table_name} row not found: {entity_id}")
            return None
        return self.mapper.from_row(mapping)

    async def exists(self, context: ExecutionContext, entity_id: UUID) -> bool:
        result = await self.uow.run(
            self.mapper.statement(self._exists_command),
            self._tenant_parameters(context, **{self._key_property: entity_id}),
        )
        return bool(result.scalar())

    async def get_all(
        self, context: ExecutionContext, pagination: Pagination = Pagination.ALL
    ) -> AsyncIterator[TDataModel]:
        """
        Stream one page of rows, ordered by key.

        Rows are pulled from a server-side cursor as the caller iterates.
        """
        command = self.mapper.generate_select_command(pagination=pagination)
        async for row in self._stream(command, self._tenant_parameters(context)):
            yield row

    async def get_modified_since(
        self, context: ExecutionContext, since: datetime
    ) -> AsyncIterator[TDataModel]:
        """Stream rows changed at or after ``since``, oldest change first."""
        parameters = self._tenant_parameters(
            context,
            **{self.mapper.parameter_name("last_changed_at", _SINCE_ALIAS): since},
        )
        async for row in self._stream(self._modified_since_command, parameters):
            yield row

    async def _stream(self, command: str, parameters: Dict[str, Any]) -> AsyncIterator[TDataModel]:
        result = await self.uow.stream(self.mapper.select_statement(command), parameters)
        try:
            async for mapping in result.mappings():
                yield self.mapper.from_row(mapping)
        finally:
            await result.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def register_new(self, context: ExecutionContext, row: TDataModel) -> bool:
        """
        Insert a new row.

        Integrity errors are an expected outcome: the error is recorded on
        the context under DUPLICATE_KEY for a unique or primary key
        violation and CONSTRAINT_VIOLATION otherwise, and False is
        returned. On PostgreSQL the enclosing transaction is aborted by the
        failed statement and must be rolled back by the caller.

        Returns:
            True if inserted, False otherwise
        """
        if not self._same_tenant(context, row):
            return False

        try:
            await self.uow.run(
                self.mapper.statement(self.mapper.insert_command),
                self.mapper.to_parameters(row),
            )
        except IntegrityError as e:
            context.add_exception(e)
            if is_unique_violation(e):
                context.add_diagnostic(
                    DUPLICATE_KEY,
                    f"{self.mapper.table_name} row {row.id} collides with an existing row",
                    MessageSeverity.ERROR,
                )
            else:
                context.add_diagnostic(
                    CONSTRAINT_VIOLATION,
                    f"{self.mapper.table_name} row {row.id} violates a constraint: {e.orig}",
                    MessageSeverity.ERROR,
                )
            logger.error(
                f"❌ Insert into {self.mapper.table_name} failed for {row.id} "
                f"[{context.correlation_id}]: {e.orig}"
            )
            return False

        logger.info(f"✅ Registered {self.mapper.table_name} row: {row.id}")
        return True

    async def write(
        self, context: ExecutionContext, row: TDataModel, expected_version: int
    ) -> bool:
        """
        Update a row if the stored version still equals ``expected_version``.

        The row must already carry its new, greater ``entity_version``.

        Returns:
            True if the row was updated, False on a version conflict or
            when no such row exists in this tenant
        """
        if not self._same_tenant(context, row):
            return False

        parameters = self.mapper.to_parameters(row)
        parameters[EXPECTED_VERSION_PARAMETER] = expected_version

        result = await self.uow.run(
            self.mapper.statement(self.mapper.update_command), parameters
        )
        if result.rowcount > 0:
            logger.info(
                f"✅ Updated {self.mapper.table_name} row {row.id} to version {row.entity_version}"
            )
            return True

        logger.warning(
            f"Version conflict on {self.mapper.table_name} row {row.id}: "
            f"expected {expected_version} [{context.correlation_id}]"
        )
        return False

    async def delete(
        self, context: ExecutionContext, entity_id: UUID, expected_version: int
    ) -> bool:
        parameters = self._tenant_parameters(context, **{self._key_property: entity_id})
        parameters[EXPECTED_VERSION_PARAMETER] = expected_version

        result = await self.uow.run(
            self.mapper.statement(self.mapper.delete_command), parameters
        )
        if result.rowcount > 0:
            logger.info(f"✅ Deleted {self.mapper.table_name} row: {entity_id}")
            return True

        logger.warning(
            f"Delete of {self.mapper.table_name} row {entity_id} at version "
            f"{expected_version} matched nothing [{context.correlation_id}]"
        )
        return False

    async def bulk_register(
        self, context: ExecutionContext, rows: Iterable[TDataModel]
    ) -> int:
        """
        Insert many rows in one round trip.

        Uses a binary COPY on PostgreSQL and a parameterised executemany
        on other stores. Rows whose tenant differs from the context
        tenant are skipped with a diagnostic.

        Returns:
            Number of rows written
        """
        rows = [row for row in rows if self._same_tenant(context, row)]
        if not rows:
            return 0

        if self.uow.dialect_name == "postgresql":
            written = await self._copy_records(rows)
        else:
            await self.uow.run(
                self.mapper.statement(self.mapper.insert_command),
                [self.mapper.to_parameters(row) for row in rows],
            )
            written = len(rows)

        logger.info(f"✅ Bulk registered {written} {self.mapper.table_name} rows")
        return written

    async def _copy_records(self, rows: Iterable[TDataModel]) -> int:
        connection = self.uow.connection
        if connection is None:
            raise NoOpenConnectionError(
                f"Unit of work '{self.uow.name}' has no open connection for bulk copy"
            )

        records = _Counted(self.mapper.encode_records(rows))
        if connection.in_transaction():
            # asyncpg only starts its transaction on the first statement sent
            # through SQLAlchemy; COPY on the raw connection would autocommit
            await connection.exec_driver_sql("SELECT 1")

        raw_connection = await connection.get_raw_connection()
        await raw_connection.driver_connection.copy_records_to_table(
            self.mapper.table_name,
            records=records,
            columns=self.mapper.copy_columns,
            schema_name=self.mapper.table_schema,
        )
        return records.count

    def _same_tenant(self, context: ExecutionContext, row: TDataModel) -> bool:
        if row.tenant_code == context.tenant_code:
            return True
        context.add_diagnostic(
            TENANT_MISMATCH,
            f"{self.mapper.table_name} row {row.id} belongs to tenant {row.tenant_code}, "
            f"not {context.tenant_code}",
            MessageSeverity.ERROR,
        )
        logger.warning(
            f"Rejected {self.mapper.table_name} row {row.id} from another tenant "
            f"[{context.correlation_id}]"
        )
        return False


def is_unique_violation(error: IntegrityError) -> bool:
    """True when an integrity error comes from a unique or primary key constraint."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    message = str(orig)
    return "UNIQUE constraint failed" in message or "Duplicate entry" in message


class _Counted:
    """Iterator wrapper that counts the records it hands out."""

    def __init__(self, records: Iterator[Tuple[Any, ...]]):
        self._records = records
        self.count = 0

    def __iter__(self) -> "_Counted":
        return self

    def __next__(self) -> Tuple[Any, ...]:
        record = next(self._records)
        self.count += 1
        return record
