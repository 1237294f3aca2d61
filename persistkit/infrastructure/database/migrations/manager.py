"""
Migration manager.

Applies and reverts versioned SQL scripts, recording each applied
version in a ledger table. Each migration runs in its own transaction
together with its ledger row; the first failure stops the batch.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
import logging

from sqlalchemy import BigInteger, DateTime, bindparam, text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from persistkit.data.exceptions import (
    IrreversibleMigrationError,
    MigrationConfigurationError,
    MigrationError,
)
from persistkit.domain.value_objects import ExecutionContext
from persistkit.infrastructure.database.config import DatabaseSettings, get_database_settings

from .loader import load_migrations, split_sql
from .models import Migration, MigrationStatus


logger = logging.getLogger(__name__)

LEDGER_TABLE = "schema_version_ledger"

UP = "up"
DOWN = "down"


class MigrationManager:
    """
    Drives the schema forward and backward through known migrations.

    Usage:
        manager = MigrationManager.from_directory(engine, "migrations")
        await manager.apply(context)
        await manager.rollback(context, to_version=1)
    """

    def __init__(
        self,
        engine: AsyncEngine,
        migrations: Iterable[Migration],
        ledger_table: str = LEDGER_TABLE,
    ):
        """
        Initialize manager.

        Args:
            engine: SQLAlchemy async engine
            migrations: Known migrations, in any order
            ledger_table: Name of the version ledger table

        Raises:
            MigrationConfigurationError: On duplicate or non-positive versions
        """
        self._engine = engine
        self._ledger_table = ledger_table
        self._migrations: Dict[int, Migration] = {}

        for migration in sorted(migrations, key=lambda m: m.version):
            if migration.version < 1:
                raise MigrationConfigurationError(
                    f"Migration '{migration}' must have a positive version"
                )
            if migration.version in self._migrations:
                raise MigrationConfigurationError(
                    f"Duplicate migration version {migration.version}"
                )
            self._migrations[migration.version] = migration

        self._create_ledger = text(
            f"CREATE TABLE IF NOT EXISTS {ledger_table} ("
            f"version BIGINT PRIMARY KEY, "
            f"applied_at TIMESTAMP NOT NULL)"
        )
        self._select_versions = text(
            f"SELECT version FROM {ledger_table} ORDER BY version"
        ).columns(version=BigInteger)
        self._insert_version = text(
            f"INSERT INTO {ledger_table} (version, applied_at) VALUES (:version, :applied_at)"
        ).bindparams(
            bindparam("version", type_=BigInteger),
            bindparam("applied_at", type_=DateTime(timezone=False)),
        )
        self._delete_version = text(
            f"DELETE FROM {ledger_table} WHERE version = :version"
        ).bindparams(bindparam("version", type_=BigInteger))

    @classmethod
    def from_directory(
        cls,
        engine: AsyncEngine,
        directory: Union[str, Path],
        ledger_table: str = LEDGER_TABLE,
    ) -> "MigrationManager":
        return cls(engine, load_migrations(directory), ledger_table=ledger_table)

    @classmethod
    def from_settings(
        cls,
        engine: AsyncEngine,
        settings: Optional[DatabaseSettings] = None,
    ) -> "MigrationManager":
        """Load scripts from ``settings.migrations_path`` (DB_MIGRATIONS_PATH)."""
        settings = settings or get_database_settings()
        if not settings.migrations_path:
            raise MigrationConfigurationError(
                "No migrations path configured (set DB_MIGRATIONS_PATH)"
            )
        return cls.from_directory(engine, settings.migrations_path)

    @property
    def migrations(self) -> List[Migration]:
        return list(self._migrations.values())

    @property
    def ledger_table(self) -> str:
        return self._ledger_table

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def apply(self, context: ExecutionContext) -> List[int]:
        """
        Apply every migration newer than the highest recorded version.

        Args:
            context: Execution context (correlation id for logging)

        Returns:
            Versions applied, in ascending order; empty when up to date

        Raises:
            MigrationError: On the first failing migration. Earlier ones
                stay recorded; the failing one is not.
        """
        async with self._engine.connect() as connection:
            applied_versions = await self._applied_versions(connection)
            current = applied_versions[-1] if applied_versions else 0
            pending = [m for m in self._migrations.values() if m.version > current]

            if not pending:
                logger.info(
                    f"Schema is up to date at version {current} [{context.correlation_id}]"
                )
                return []

            logger.info(
                f"Applying {len(pending)} migrations above version {current} "
                f"[{context.correlation_id}]"
            )
            applied = []
            for migration in pending:
                await self._run(connection, migration, UP, context)
                applied.append(migration.version)

        logger.info(f"✅ Schema migrated to version {applied[-1]} [{context.correlation_id}]")
        return applied

    async def rollback(self, context: ExecutionContext, to_version: int) -> List[int]:
        """
        Revert every applied migration above ``to_version``, newest first.

        Every selected migration is checked for a down script before
        anything runs.

        Args:
            context: Execution context
            to_version: Version to end at; 0 reverts everything

        Returns:
            Versions reverted, in descending order

        Raises:
            IrreversibleMigrationError: If a selected migration has no down script
            MigrationConfigurationError: If an applied version has no known migration
            MigrationError: On the first failing down script
        """
        if to_version < 0:
            raise ValueError(f"to_version must be zero or positive, got {to_version}")

        async with self._engine.connect() as connection:
            applied_versions = await self._applied_versions(connection)
            selected = sorted((v for v in applied_versions if v > to_version), reverse=True)

            unknown = [v for v in selected if v not in self._migrations]
            if unknown:
                raise MigrationConfigurationError(
                    f"Applied versions with no known migration: {unknown}"
                )

            for version in selected:
                migration = self._migrations[version]
                if not migration.is_reversible:
                    logger.error(
                        f"❌ Cannot roll back to {to_version}: migration {migration} "
                        f"is irreversible [{context.correlation_id}]"
                    )
                    raise IrreversibleMigrationError(migration.version, migration.name)

            if not selected:
                logger.info(
                    f"Nothing to roll back above version {to_version} [{context.correlation_id}]"
                )
                return []

            for version in selected:
                await self._run(connection, self._migrations[version], DOWN, context)

        logger.info(f"✅ Schema rolled back to version {to_version} [{context.correlation_id}]")
        return selected

    async def status(self, context: ExecutionContext) -> MigrationStatus:
        """Report applied versions, pending versions and the last applied one."""
        async with self._engine.connect() as connection:
            applied_versions = await self._applied_versions(connection)

        last_applied = applied_versions[-1] if applied_versions else None
        pending = [v for v in self._migrations if v > (last_applied or 0)]

        logger.debug(
            f"Migration status: last applied {last_applied}, {len(pending)} pending "
            f"[{context.correlation_id}]"
        )
        return MigrationStatus(
            applied=applied_versions,
            pending=pending,
            last_applied_version=last_applied,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _applied_versions(self, connection: AsyncConnection) -> List[int]:
        async with connection.begin():
            await connection.execute(self._create_ledger)
            result = await connection.execute(self._select_versions)
            return [int(version) for version in result.scalars()]

    async def _run(
        self,
        connection: AsyncConnection,
        migration: Migration,
        direction: str,
        context: ExecutionContext,
    ) -> None:
        script = migration.up_sql if direction == UP else migration.down_sql
        logger.info(f"Running migration {migration} ({direction}) [{context.correlation_id}]")

        try:
            async with connection.begin():
                for statement in split_sql(script):
                    await connection.exec_driver_sql(statement)

                if direction == UP:
                    await connection.execute(
                        self._insert_version,
                        {
                            "version": migration.version,
                            "applied_at": datetime.now(timezone.utc).replace(tzinfo=None),
                        },
                    )
                else:
                    await connection.execute(self._delete_version, {"version": migration.version})
        except Exception as e:
            logger.error(
                f"❌ Migration {migration} failed during {direction} "
                f"[{context.correlation_id}]: {e}"
            )
            raise MigrationError(migration.version, migration.name, direction, e) from e

        logger.info(f"✅ Migration {migration} ({direction}) complete")
