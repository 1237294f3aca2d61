"""Unit of Work pattern for transaction boundaries."""

from enum import Enum
from typing import Any, Mapping, Optional
import logging

from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncResult, AsyncTransaction
from sqlalchemy.sql import Executable

from persistkit.application.interfaces import (
    IDatabaseConnection,
    IUnitOfWork,
    Parameters,
    TInput,
    TransactionHandler,
)
from persistkit.domain.enums import LifecycleOutcome, MessageSeverity
from persistkit.domain.value_objects import ExecutionContext
from persistkit.infrastructure.database.connection import DatabaseConnection

from .exceptions import NoOpenConnectionError


logger = logging.getLogger(__name__)

NO_OPEN_CONNECTION = "NO_OPEN_CONNECTION"
TRANSACTION_ALREADY_ACTIVE = "TRANSACTION_ALREADY_ACTIVE"
NO_ACTIVE_TRANSACTION = "NO_ACTIVE_TRANSACTION"


class UnitOfWorkState(str, Enum):
    NO_CONNECTION = "no_connection"
    CONNECTION_OPEN = "connection_open"
    TRANSACTION_ACTIVE = "transaction_active"


class UnitOfWork(IUnitOfWork):
    """
    Unit of Work pattern implementation.

    Responsibilities:
    1. Own exactly one connection for one logical operation
    2. Layer at most one transaction on top of it
    3. Guarantee rollback-then-close on every exit path

    Not safe for concurrent use; allocate one per request or task.

    Usage:
        async with create_uow(engine) as uow:
            ok = await uow.execute(context, order, handler)

        async with create_uow(engine) as uow:
            await uow.open_connection(context)
            await uow.begin_transaction(context)
            await repository.register_new(context, row)
            await uow.commit(context)
    """

    def __init__(self, connection: IDatabaseConnection, name: str = "default") -> None:
        """Initialize Unit of Work.

        Args:
            connection: The connection this unit of work owns
            name: Label used in log messages
        """
        self._connection = connection
        self._name = name
        self._transaction: Optional[AsyncTransaction] = None

    async def __aenter__(self) -> "UnitOfWork":
        """Start unit of work scope."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Roll back anything still open, then close."""
        if exc_type is not None and self._transaction is not None:
            logger.error(f"Unit of work '{self._name}' failed: {exc_val!r}")
        await self.dispose()

    @property
    def name(self) -> str:
        return self._name

    @property
    def dialect_name(self) -> str:
        return self._connection.dialect_name

    @property
    def state(self) -> UnitOfWorkState:
        if self._transaction is not None:
            return UnitOfWorkState.TRANSACTION_ACTIVE
        if self._connection.is_open():
            return UnitOfWorkState.CONNECTION_OPEN
        return UnitOfWorkState.NO_CONNECTION

    @property
    def connection(self) -> Optional[AsyncConnection]:
        return self._connection.connection

    def has_active_transaction(self) -> bool:
        return self._transaction is not None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def open_connection(self, context: ExecutionContext) -> LifecycleOutcome:
        return await self._connection.try_open(context)

    async def close_connection(self, context: ExecutionContext) -> LifecycleOutcome:
        """Close the connection, rolling back an active transaction first."""
        if self._transaction is not None:
            await self.rollback(context)
        return await self._connection.try_close(context)

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------

    async def begin_transaction(self, context: ExecutionContext) -> LifecycleOutcome:
        connection = self._connection.connection
        if connection is None:
            context.add_diagnostic(
                NO_OPEN_CONNECTION,
                f"Unit of work '{self._name}' cannot begin a transaction without an open connection",
                MessageSeverity.WARNING,
            )
            return LifecycleOutcome.CONFLICT

        if self._transaction is not None:
            context.add_diagnostic(
                TRANSACTION_ALREADY_ACTIVE,
                f"Unit of work '{self._name}' already has an active transaction",
                MessageSeverity.WARNING,
            )
            return LifecycleOutcome.ALREADY_IN_STATE

        if connection.in_transaction():
            # Statements issued before begin autobegan a transaction; it becomes ours
            self._transaction = connection.get_transaction()
        else:
            self._transaction = await connection.begin()
        logger.debug(f"Transaction started on '{self._name}' [{context.correlation_id}]")
        return LifecycleOutcome.SUCCESS

    async def commit(self, context: ExecutionContext) -> LifecycleOutcome:
        """Commit the active transaction."""
        if self._transaction is None:
            return self._no_active_transaction(context, "commit")

        transaction, self._transaction = self._transaction, None
        try:
            await transaction.commit()
        except Exception as e:
            logger.error(f"❌ Commit failed on '{self._name}' [{context.correlation_id}]: {e}")
            if transaction.is_active:
                await transaction.rollback()
            raise

        logger.info(f"✅ Transaction committed on '{self._name}' [{context.correlation_id}]")
        return LifecycleOutcome.SUCCESS

    async def rollback(self, context: ExecutionContext) -> LifecycleOutcome:
        """Rollback the active transaction."""
        if self._transaction is None:
            return self._no_active_transaction(context, "rollback")

        transaction, self._transaction = self._transaction, None
        if transaction.is_active:
            await transaction.rollback()

        logger.warning(f"Transaction rolled back on '{self._name}' [{context.correlation_id}]")
        return LifecycleOutcome.SUCCESS

    def _no_active_transaction(self, context: ExecutionContext, action: str) -> LifecycleOutcome:
        context.add_diagnostic(
            NO_ACTIVE_TRANSACTION,
            f"Unit of work '{self._name}' has no active transaction to {action}",
            MessageSeverity.WARNING,
        )
        return LifecycleOutcome.CONFLICT

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        context: ExecutionContext,
        input: TInput,
        handler: TransactionHandler,
    ) -> bool:
        """
        Run ``handler(context, input)`` inside its own transaction.

        Commits when the handler returns True. Rolls back when it returns
        False or raises; exceptions (cancellation included) are re-raised
        after the rollback. A connection opened here is closed here.

        Args:
            context: Execution context
            input: Value handed to the handler
            handler: Async callable returning True on success

        Returns:
            True if the handler succeeded and the commit went through
        """
        opened_here = False
        if not self._connection.is_open():
            await self.open_connection(context)
            opened_here = True

        try:
            if not await self.begin_transaction(context):
                return False

            try:
                succeeded = await handler(context, input)
            except BaseException:
                await self.rollback(context)
                raise

            if not succeeded:
                await self.rollback(context)
                return False

            return bool(await self.commit(context))
        finally:
            if opened_here:
                await self.close_connection(context)

    async def run(self, statement: Executable, parameters: Parameters = None) -> Result:
        """Execute a statement on the owned connection, in issue order."""
        return await self._require_connection().execute(statement, parameters)

    async def stream(
        self, statement: Executable, parameters: Optional[Mapping[str, Any]] = None
    ) -> AsyncResult:
        """Execute a statement with a server-side cursor."""
        return await self._require_connection().stream(statement, parameters)

    def _require_connection(self) -> AsyncConnection:
        connection = self._connection.connection
        if connection is None:
            raise NoOpenConnectionError(
                f"Unit of work '{self._name}' has no open connection; call open_connection() first"
            )
        return connection

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    async def dispose(self) -> None:
        """Roll back if a transaction is active, then close if open.

        Safe to call from any state and more than once.
        """
        transaction, self._transaction = self._transaction, None
        try:
            if transaction is not None and transaction.is_active:
                await transaction.rollback()
                logger.warning(f"Transaction rolled back on dispose of '{self._name}'")
        finally:
            await self._connection.dispose()


def create_uow(engine: AsyncEngine, name: str = "default") -> UnitOfWork:
    """Create a new Unit of Work instance over a fresh connection.

    Args:
        engine: SQLAlchemy async engine

    Returns:
        UnitOfWork instance
    """
    return UnitOfWork(DatabaseConnection(engine, name=name), name=name)
