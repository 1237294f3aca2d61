"""
End-to-End Demo: Tenant-scoped order persistence

This demonstrates the complete workflow:
1. Migrate the schema from demo/migrations
2. Register orders inside a unit of work
3. Read them back, page by page
4. Update with optimistic concurrency (and lose a stale write)
5. Show tenant isolation
6. Roll the schema back

Uses a local SQLite file unless DB_DATABASE_URL points elsewhere.
The scripts in demo/migrations are written for SQLite.
"""
import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

from dotenv import load_dotenv

from persistkit.data import DataModel, DataModelMapper, MapperBuilder, create_uow
from persistkit.data.repositories import DataModelRepository
from persistkit.domain.value_objects import (
    ExecutionContext,
    Pagination,
    uuid_to_hex_id,
)
from persistkit.infrastructure.database import (
    DatabaseSettings,
    MigrationManager,
    close_database,
    init_database,
)
from persistkit.infrastructure.logging import get_logger

_DEMO_ROOT = Path(__file__).resolve().parent
load_dotenv(dotenv_path=_DEMO_ROOT.parent / ".env")

logger = get_logger("persistkit")


@dataclass(kw_only=True)
class OrderDataModel(DataModel):
    order_number: str
    customer_email: str
    total: Decimal
    status: str = "pending"


class OrderMapper(DataModelMapper[OrderDataModel]):
    data_model_type = OrderDataModel

    def configure(self, builder: MapperBuilder) -> None:
        builder.to_table("orders")


def new_order(context: ExecutionContext, number: str, total: str) -> OrderDataModel:
    return OrderDataModel(
        # Low 32 bits cleared so the id has a 24-char hex form
        id=UUID(int=uuid4().int >> 32 << 32),
        tenant_code=context.tenant_code,
        created_by=context.execution_user,
        created_at=datetime.now(timezone.utc),
        order_number=number,
        customer_email="buyer@example.com",
        total=Decimal(total),
    )


async def demo() -> None:
    print("\n" + "=" * 80)
    print("DEMO: Tenant-scoped order persistence")
    print("=" * 80 + "\n")

    settings = DatabaseSettings()
    connection_string = settings.database_url or f"sqlite:///{_DEMO_ROOT / 'demo.db'}"
    engine = await init_database(connection_string, settings)

    context = ExecutionContext(
        tenant_code=uuid4(),
        execution_user="demo",
        execution_origin="end_to_end_demo",
    )
    mapper = OrderMapper()

    # =========================================================================
    # MIGRATE
    # =========================================================================
    print("📦 Migrating schema...")
    migrations = MigrationManager.from_directory(engine, _DEMO_ROOT / "migrations")
    applied = await migrations.apply(context)
    print(f"✅ Applied versions: {applied or 'none (already up to date)'}\n")

    try:
        # =====================================================================
        # REGISTER
        # =====================================================================
        print("🏗️ Registering orders...")
        orders = [new_order(context, f"ORD-{i:04d}", f"{10 * i}.99") for i in range(1, 6)]

        uow = create_uow(engine, name="register")

        async def register_all(ctx: ExecutionContext, rows) -> bool:
            repository = DataModelRepository(mapper, uow)
            return await repository.bulk_register(ctx, rows) == len(rows)

        committed = await uow.execute(context, orders, register_all)
        print(f"✅ Committed: {committed}\n")

        # =====================================================================
        # READ AND UPDATE
        # =====================================================================
        async with create_uow(engine, name="update") as uow:
            await uow.open_connection(context)
            repository = DataModelRepository(mapper, uow)

            print("📄 First page of orders:")
            async for order in repository.get_all(context, Pagination(page=1, page_size=3)):
                print(f"   {uuid_to_hex_id(order.id)}  {order.order_number}  {order.total}")

            await uow.begin_transaction(context)
            original = orders[0]
            shipped = replace(
                original,
                status="shipped",
                entity_version=original.entity_version + 1,
                last_changed_at=datetime.now(timezone.utc),
                last_changed_by=context.execution_user,
                last_changed_correlation_id=context.correlation_id,
            )
            print(f"\n✏️ Ship {original.order_number}: {await repository.write(context, shipped, 1)}")

            stale = replace(shipped, status="cancelled")
            print(f"✏️ Stale cancel of {original.order_number}: "
                  f"{await repository.write(context, stale, 1)}")
            await uow.commit(context)

            # =================================================================
            # TENANT ISOLATION
            # =================================================================
            stranger = context.with_tenant(uuid4())
            seen = await repository.get_by_id(stranger, original.id)
            print(f"\n🔒 Another tenant sees {original.order_number}: {seen is not None}")

        # =====================================================================
        # STATUS
        # =====================================================================
        status = await migrations.status(context)
        print(f"\n📊 Schema at version {status.last_applied_version}, "
              f"{len(status.pending)} pending")
    finally:
        print("\n⏪ Rolling schema back...")
        await migrations.rollback(context, to_version=0)
        await close_database()

    if context.has_diagnostics:
        for diagnostic in context.diagnostics:
            logger.warning(str(diagnostic))

    print("\n✅ Demo complete\n")


if __name__ == "__main__":
    asyncio.run(demo())
