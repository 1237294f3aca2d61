"""
Database Connection.

Owns the lifecycle of one physical link checked out from an
AsyncEngine's pool.
"""
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from persistkit.application.interfaces import IDatabaseConnection
from persistkit.domain.enums import LifecycleOutcome, MessageSeverity
from persistkit.domain.value_objects import ExecutionContext


logger = logging.getLogger(__name__)

CONNECTION_ALREADY_OPEN = "CONNECTION_ALREADY_OPEN"
CONNECTION_ALREADY_CLOSED = "CONNECTION_ALREADY_CLOSED"


class DatabaseConnection(IDatabaseConnection):
    """
    One link to the store, Closed or Open.

    Usage:
        async with DatabaseConnection(engine) as connection:
            await connection.try_open(context)
            await connection.connection.execute(text("SELECT 1"))
    """

    def __init__(self, engine: AsyncEngine, name: str = "default"):
        """
        Initialize connection.

        Args:
            engine: SQLAlchemy async engine (pool owner)
            name: Label used in log messages
        """
        self._engine = engine
        self._name = name
        self._connection: Optional[AsyncConnection] = None

    async def __aenter__(self) -> "DatabaseConnection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.dispose()

    @property
    def name(self) -> str:
        return self._name

    @property
    def connection(self) -> Optional[AsyncConnection]:
        return self._connection

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def is_open(self) -> bool:
        return self._connection is not None

    async def try_open(self, context: ExecutionContext) -> LifecycleOutcome:
        if self._connection is not None:
            context.add_diagnostic(
                CONNECTION_ALREADY_OPEN,
                f"Connection '{self._name}' is already open",
                MessageSeverity.WARNING,
            )
            logger.debug(f"Connection '{self._name}' already open [{context.correlation_id}]")
            return LifecycleOutcome.ALREADY_IN_STATE

        # Transport failures propagate; they are not state conflicts
        self._connection = await self._engine.connect()
        logger.debug(f"Connection '{self._name}' opened [{context.correlation_id}]")
        return LifecycleOutcome.SUCCESS

    async def try_close(self, context: ExecutionContext) -> LifecycleOutcome:
        if self._connection is None:
            context.add_diagnostic(
                CONNECTION_ALREADY_CLOSED,
                f"Connection '{self._name}' is already closed",
                MessageSeverity.WARNING,
            )
            logger.debug(f"Connection '{self._name}' already closed [{context.correlation_id}]")
            return LifecycleOutcome.ALREADY_IN_STATE

        connection, self._connection = self._connection, None
        await connection.close()
        logger.debug(f"Connection '{self._name}' closed [{context.correlation_id}]")
        return LifecycleOutcome.SUCCESS

    async def dispose(self) -> None:
        if self._connection is None:
            return

        connection, self._connection = self._connection, None
        await connection.close()
        logger.debug(f"Connection '{self._name}' disposed")
