"""
Unit tests for DataModelRepository paths that need a specific driver.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from persistkit.data.repositories import DataModelRepository
from persistkit.data.repositories.data_model_repository_impl import is_unique_violation


class _DriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _postgres_uow(in_transaction: bool):
    """Unit of work double over a PostgreSQL connection that records call order."""
    calls = []
    copied = []

    def copy_records_to_table(table_name, *, records, columns, schema_name):
        calls.append("copy")
        copied.extend(records)

    raw_connection = MagicMock()
    raw_connection.driver_connection.copy_records_to_table = AsyncMock(
        side_effect=copy_records_to_table
    )

    connection = MagicMock()
    connection.in_transaction.return_value = in_transaction
    connection.exec_driver_sql = AsyncMock(side_effect=lambda sql: calls.append(sql))
    connection.get_raw_connection = AsyncMock(return_value=raw_connection)

    uow = MagicMock(dialect_name="postgresql", connection=connection)
    uow.name = "copy"
    return uow, raw_connection.driver_connection, calls, copied


class TestBulkCopy:
    """Test the PostgreSQL COPY path of bulk_register."""

    @pytest.mark.asyncio
    async def test_copy_sends_table_columns_schema_and_records(
        self, context, product_factory, product_mapper_type
    ):
        class CatalogProductMapper(product_mapper_type):
            def configure(self, builder):
                super().configure(builder)
                builder.to_table("products", schema="catalog")

        mapper = CatalogProductMapper()
        uow, driver, _, copied = _postgres_uow(in_transaction=True)
        rows = [product_factory(sku="C-1"), product_factory(sku="C-2")]

        written = await DataModelRepository(mapper, uow).bulk_register(context, rows)

        assert written == 2
        driver.copy_records_to_table.assert_awaited_once()
        args, kwargs = driver.copy_records_to_table.call_args
        assert args == ("products",)
        assert kwargs["columns"] == mapper.copy_columns
        assert kwargs["schema_name"] == "catalog"
        assert copied == list(mapper.encode_records(rows))

    @pytest.mark.asyncio
    async def test_copy_joins_the_active_transaction(self, context, product_mapper, product_factory):
        uow, _, calls, _ = _postgres_uow(in_transaction=True)

        await DataModelRepository(product_mapper, uow).bulk_register(context, [product_factory()])

        assert calls == ["SELECT 1", "copy"]

    @pytest.mark.asyncio
    async def test_copy_without_transaction_sends_no_extra_statement(
        self, context, product_mapper, product_factory
    ):
        uow, _, calls, _ = _postgres_uow(in_transaction=False)

        await DataModelRepository(product_mapper, uow).bulk_register(context, [product_factory()])

        assert calls == ["copy"]

    @pytest.mark.asyncio
    async def test_copy_skips_foreign_tenant_rows(
        self, context, other_tenant_context, product_mapper, product_factory
    ):
        uow, _, _, copied = _postgres_uow(in_transaction=True)
        rows = [
            product_factory(sku="MINE"),
            product_factory(tenant_code=other_tenant_context.tenant_code),
        ]

        written = await DataModelRepository(product_mapper, uow).bulk_register(context, rows)

        assert written == 1
        assert len(copied) == 1


class TestUniqueViolation:
    """Test classification of insert integrity errors."""

    @pytest.mark.parametrize(
        "orig, expected",
        [
            (_DriverError("duplicate key value", sqlstate="23505"), True),
            (_DriverError("null value in column", sqlstate="23502"), False),
            (_DriverError("violates foreign key", sqlstate="23503"), False),
            (Exception("UNIQUE constraint failed: products.id"), True),
            (Exception("NOT NULL constraint failed: products.name"), False),
            (Exception("Duplicate entry 'x' for key 'PRIMARY'"), True),
        ],
    )
    def test_is_unique_violation(self, orig, expected):
        error = IntegrityError("INSERT INTO products ...", {}, orig)

        assert is_unique_violation(error) is expected
