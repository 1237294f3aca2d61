"""Pytest configuration and shared fixtures."""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from persistkit.data import DataModel, DataModelMapper, MapperBuilder
from persistkit.data.mappers import Int32
from persistkit.domain.value_objects import ExecutionContext
from persistkit.infrastructure.database import DatabaseSettings, create_engine
from persistkit.infrastructure.database.migrations import Migration, MigrationManager


TENANT_A = UUID("8a1f0c2e-4b6d-4e3a-9c5f-7d2b1e0a6c3f")
TENANT_B = UUID("1b2c3d4e-5f60-4718-89ab-cdef01234567")

PRODUCTS_UP = """
-- Catalogue rows
CREATE TABLE products (
    id CHAR(32) NOT NULL PRIMARY KEY,
    tenant_code CHAR(32) NOT NULL,
    created_by TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    last_changed_by TEXT,
    last_changed_at TIMESTAMP,
    last_changed_execution_origin TEXT,
    last_changed_correlation_id CHAR(32),
    last_changed_business_operation_code TEXT,
    entity_version BIGINT NOT NULL,
    product_sku TEXT NOT NULL,
    name TEXT NOT NULL,
    price NUMERIC NOT NULL,
    quantity INTEGER NOT NULL,
    weight DOUBLE PRECISION,
    is_active BOOLEAN NOT NULL
);

CREATE INDEX ix_products_tenant ON products (tenant_code);
"""

PRODUCTS_DOWN = """
DROP INDEX ix_products_tenant;
DROP TABLE products;
"""


@dataclass(kw_only=True)
class ProductDataModel(DataModel):
    """Row shape used across the test suite."""

    sku: str
    name: str
    price: Decimal
    quantity: Int32
    weight: Optional[float] = None
    is_active: bool = True


class ProductMapper(DataModelMapper[ProductDataModel]):
    data_model_type = ProductDataModel

    def configure(self, builder: MapperBuilder) -> None:
        builder.to_table("products")
        builder.map("sku", "product_sku")


def make_product(tenant_code: UUID = TENANT_A, **overrides) -> ProductDataModel:
    values = dict(
        id=uuid4(),
        tenant_code=tenant_code,
        created_by="tests",
        created_at=datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        sku="SKU-001",
        name="Espresso cup",
        price=Decimal("12.50"),
        quantity=Int32(4),
    )
    values.update(overrides)
    return ProductDataModel(**values)


@pytest.fixture
def context() -> ExecutionContext:
    """Execution context for tenant A."""
    return ExecutionContext(
        tenant_code=TENANT_A,
        execution_user="tests",
        execution_origin="pytest",
    )


@pytest.fixture
def other_tenant_context() -> ExecutionContext:
    """Execution context for tenant B."""
    return ExecutionContext(tenant_code=TENANT_B, execution_user="tests")


@pytest.fixture
def product_mapper() -> ProductMapper:
    return ProductMapper()


@pytest.fixture
def test_settings(tmp_path) -> DatabaseSettings:
    """Settings pointing at a throwaway SQLite file."""
    return DatabaseSettings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'persistkit.db'}",
    )


@pytest_asyncio.fixture
async def test_engine(test_settings):
    """Create test database engine."""
    engine = create_engine(test_settings.resolve_connection_string(), test_settings)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def products_table(test_engine, context):
    """Create the products table through a migration."""
    manager = MigrationManager(
        test_engine,
        [Migration(version=1, name="create_products", up_sql=PRODUCTS_UP, down_sql=PRODUCTS_DOWN)],
    )
    await manager.apply(context)
    yield manager


@pytest.fixture
def product_factory():
    """Build ProductDataModel rows with sensible defaults."""
    return make_product


@pytest.fixture
def product_mapper_type():
    return ProductMapper
