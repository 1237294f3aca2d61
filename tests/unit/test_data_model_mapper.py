"""
Tests for generated SQL and row handling in DataModelMapper.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from persistkit.data import MapperConfigurationError, MapperRegistry
from persistkit.data.mappers import (
    EXPECTED_VERSION_PARAMETER,
    RelationalOperator,
    SortDirection,
)
from persistkit.domain.value_objects import Pagination


class TestGeneratedCommands:
    """Test SQL cached at configuration time."""

    def test_select_is_tenant_scoped(self, product_mapper):
        command = product_mapper.select_command

        assert command.startswith("SELECT products.id AS \"id\"")
        assert "products.product_sku AS \"sku\"" in command
        assert command.endswith("WHERE products.tenant_code = :tenant_code")

    def test_insert_lists_every_column(self, product_mapper):
        command = product_mapper.insert_command

        assert command.startswith("INSERT INTO products (id, tenant_code, ")
        for column in product_mapper.columns:
            assert f":{column.property_name}" in command

    def test_update_guards_tenant_key_and_version(self, product_mapper):
        command = product_mapper.update_command

        assert "SET " in command
        assert "tenant_code = :tenant_code," not in command.split("WHERE")[0]
        assert "id = :id," not in command.split("WHERE")[0]
        assert "products.tenant_code = :tenant_code" in command
        assert "products.id = :id" in command
        assert f"products.entity_version = :{EXPECTED_VERSION_PARAMETER}" in command
        assert "products.entity_version < :entity_version" in command

    def test_delete_guards_version(self, product_mapper):
        command = product_mapper.delete_command

        assert command.startswith("DELETE FROM products WHERE products.tenant_code = :tenant_code")
        assert f"= :{EXPECTED_VERSION_PARAMETER}" in command

    def test_commands_are_cached(self, product_mapper):
        assert product_mapper.select_command is product_mapper.select_command
        assert product_mapper.update_command is product_mapper.update_command

    def test_copy_command(self, product_mapper):
        assert product_mapper.copy_command.startswith("COPY products (id, tenant_code")
        assert product_mapper.copy_command.endswith("FROM STDIN (FORMAT BINARY)")


class TestClauses:
    """Test where/order-by builders and select generation."""

    def test_where_with_alias(self, product_mapper):
        clause = product_mapper.where(
            "last_changed_at", RelationalOperator.GREATER_THAN_OR_EQUAL, alias="since"
        )

        assert clause.value == "products.last_changed_at >= :since__last_changed_at"

    def test_where_combination(self, product_mapper):
        clause = product_mapper.where("sku") & (
            product_mapper.where("quantity", RelationalOperator.LESS_THAN)
            | product_mapper.where("is_active", RelationalOperator.NOT_EQUAL)
        )

        assert clause.value == (
            "products.product_sku = :sku AND "
            "(products.quantity < :quantity OR products.is_active <> :is_active)"
        )

    def test_where_unknown_property_fails(self, product_mapper):
        with pytest.raises(MapperConfigurationError):
            product_mapper.where("colour")

    def test_order_by_combination(self, product_mapper):
        order = product_mapper.order_by_descending("price") + product_mapper.order_by("name")

        assert order.value == "products.price DESC, products.name ASC"

    def test_paged_select_defaults_to_key_order(self, product_mapper):
        command = product_mapper.generate_select_command(
            pagination=Pagination(page=3, page_size=20)
        )

        assert command.endswith("ORDER BY products.id ASC LIMIT 20 OFFSET 40")

    def test_unbounded_select_has_no_limit(self, product_mapper):
        command = product_mapper.generate_select_command(pagination=Pagination.ALL)

        assert "LIMIT" not in command
        assert "ORDER BY" not in command

    def test_select_with_where_and_order(self, product_mapper):
        command = product_mapper.generate_select_command(
            where=product_mapper.where("sku"),
            order_by=product_mapper.order_by("name", SortDirection.DESCENDING),
        )

        assert command.endswith(
            "WHERE products.tenant_code = :tenant_code AND (products.product_sku = :sku) "
            "ORDER BY products.name DESC"
        )

    def test_exists_command(self, product_mapper):
        command = product_mapper.generate_exists_command(product_mapper.where("id"))

        assert command.startswith("SELECT EXISTS (SELECT 1 FROM products WHERE")
        assert "products.tenant_code = :tenant_code" in command

    def test_statement_rejects_unknown_parameter(self, product_mapper):
        with pytest.raises(MapperConfigurationError):
            product_mapper.statement("SELECT 1 FROM products WHERE colour = :colour")


class TestRowHandling:
    """Test parameter binding and bulk encoding."""

    def test_to_parameters_normalises_timestamps_to_utc(self, product_mapper, product_factory):
        cairo = timezone(timedelta(hours=2))
        row = product_factory(created_at=datetime(2024, 3, 1, 11, 30, tzinfo=cairo))

        parameters = product_mapper.to_parameters(row)

        assert parameters["created_at"] == datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        assert parameters["created_at"].utcoffset() == timedelta(0)
        assert parameters["sku"] == "SKU-001"

    def test_from_row_restores_utc_on_naive_timestamps(self, product_mapper, product_factory):
        row = product_factory()
        mapping = product_mapper.to_parameters(row)
        mapping["created_at"] = datetime(2024, 3, 1, 9, 30)

        restored = product_mapper.from_row(mapping)

        assert restored.created_at.tzinfo == timezone.utc
        assert restored == row

    def test_encode_records_in_column_order(self, product_mapper, product_factory):
        rows = [product_factory(sku="A"), product_factory(sku="B", price=Decimal("3"))]

        records = list(product_mapper.encode_records(rows))

        assert len(records) == 2
        sku_index = product_mapper.copy_columns.index("product_sku")
        assert [r[sku_index] for r in records] == ["A", "B"]
        assert len(records[0]) == len(product_mapper.copy_columns)

    def test_encode_records_is_lazy(self, product_mapper, product_factory):
        def rows():
            yield product_factory()
            raise AssertionError("consumed too far")

        records = product_mapper.encode_records(rows())

        assert next(records)[0] is not None


class TestConfigureOnce:
    """Test that mappings are built exactly once."""

    def test_initialize_twice_fails(self, product_mapper):
        with pytest.raises(MapperConfigurationError):
            product_mapper.initialize()

    def test_registry_rejects_second_mapper(self, product_mapper_type):
        registry = MapperRegistry()
        mapper = registry.register(product_mapper_type)

        with pytest.raises(MapperConfigurationError):
            registry.register(product_mapper_type)

        assert registry.get(product_mapper_type.data_model_type) is mapper
        assert product_mapper_type.data_model_type in registry
        assert len(registry) == 1

    def test_registry_unknown_type_fails(self):
        with pytest.raises(MapperConfigurationError):
            MapperRegistry().get(dict)
