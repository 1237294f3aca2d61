"""Application layer interfaces."""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar, Union

from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncResult
from sqlalchemy.sql import Executable

from persistkit.domain.enums import LifecycleOutcome
from persistkit.domain.value_objects import ExecutionContext

TInput = TypeVar("TInput")

Parameters = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]
TransactionHandler = Callable[[ExecutionContext, TInput], Awaitable[bool]]


class IDatabaseConnection(ABC):
    """
    Interface for one physical link to the store.

    Open/close are idempotent: a redundant call returns a falsy
    LifecycleOutcome and records a diagnostic instead of raising.
    """

    @abstractmethod
    def is_open(self) -> bool:
        """Check whether the link is currently open."""
        pass

    @abstractmethod
    async def try_open(self, context: ExecutionContext) -> LifecycleOutcome:
        """
        Open the link.

        Args:
            context: Execution context receiving diagnostics

        Returns:
            SUCCESS, or ALREADY_IN_STATE if already open

        Raises:
            Exception: Transport failures from the driver
        """
        pass

    @abstractmethod
    async def try_close(self, context: ExecutionContext) -> LifecycleOutcome:
        """
        Close the link.

        Returns:
            SUCCESS, or ALREADY_IN_STATE if already closed
        """
        pass

    @property
    @abstractmethod
    def connection(self) -> Optional[AsyncConnection]:
        """The live driver connection, or None while closed."""
        pass

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Dialect of the underlying engine (e.g. ``postgresql``)."""
        pass

    @abstractmethod
    async def dispose(self) -> None:
        """Close the link if open."""
        pass


class IUnitOfWork(ABC):
    """
    Interface for a unit of work.

    Owns one connection and at most one active transaction for a single
    logical operation. Not safe for concurrent use.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        pass

    @property
    @abstractmethod
    def connection(self) -> Optional[AsyncConnection]:
        """The owned driver connection, or None while closed."""
        pass

    @abstractmethod
    async def open_connection(self, context: ExecutionContext) -> LifecycleOutcome:
        pass

    @abstractmethod
    async def close_connection(self, context: ExecutionContext) -> LifecycleOutcome:
        pass

    @abstractmethod
    async def begin_transaction(self, context: ExecutionContext) -> LifecycleOutcome:
        pass

    @abstractmethod
    async def commit(self, context: ExecutionContext) -> LifecycleOutcome:
        pass

    @abstractmethod
    async def rollback(self, context: ExecutionContext) -> LifecycleOutcome:
        pass

    @abstractmethod
    async def execute(
        self,
        context: ExecutionContext,
        input: TInput,
        handler: TransactionHandler,
    ) -> bool:
        """
        Run ``handler`` inside a transaction.

        Commits when the handler returns True; rolls back when it
        returns False or raises (the exception is re-raised).
        """
        pass

    @abstractmethod
    async def run(self, statement: Executable, parameters: Parameters = None) -> Result:
        """Execute a statement on the owned connection."""
        pass

    @abstractmethod
    async def stream(
        self, statement: Executable, parameters: Optional[Mapping[str, Any]] = None
    ) -> AsyncResult:
        """Execute a statement with a server-side cursor."""
        pass

    @abstractmethod
    async def dispose(self) -> None:
        """Roll back if a transaction is active, then close if open."""
        pass
