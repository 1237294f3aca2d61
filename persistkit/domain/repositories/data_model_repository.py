"""Repository interface for data model rows."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncIterator, Generic, Iterable, Optional, TypeVar
from uuid import UUID

from ..value_objects import ExecutionContext, Pagination

TDataModel = TypeVar("TDataModel")


class IDataModelRepository(ABC, Generic[TDataModel]):
    """
    Abstract CRUD surface over one row type.

    Every operation is scoped to ``context.tenant_code``.
    """

    @abstractmethod
    async def get_by_id(
        self, context: ExecutionContext, entity_id: UUID
    ) -> Optional[TDataModel]:
        """Retrieve a row by id within the context tenant.

        Args:
            context: Execution context (supplies the tenant)
            entity_id: Row identifier

        Returns:
            The row if found in this tenant, None otherwise
        """
        pass

    @abstractmethod
    async def exists(self, context: ExecutionContext, entity_id: UUID) -> bool:
        """Check whether a row exists within the context tenant."""
        pass

    @abstractmethod
    def get_all(
        self, context: ExecutionContext, pagination: Pagination
    ) -> AsyncIterator[TDataModel]:
        """Stream one page of rows; forward-only and non-restartable."""
        pass

    @abstractmethod
    def get_modified_since(
        self, context: ExecutionContext, since: datetime
    ) -> AsyncIterator[TDataModel]:
        """Stream rows changed at or after ``since``, oldest change first."""
        pass

    @abstractmethod
    async def register_new(self, context: ExecutionContext, row: TDataModel) -> bool:
        """Insert a new row.

        Returns:
            True if inserted, False on id/tenant collision
        """
        pass

    @abstractmethod
    async def write(
        self, context: ExecutionContext, row: TDataModel, expected_version: int
    ) -> bool:
        """Update a row guarded by optimistic concurrency.

        Returns:
            True if the stored version matched and the row was updated,
            False otherwise (the stored row is left untouched)
        """
        pass

    @abstractmethod
    async def delete(
        self, context: ExecutionContext, entity_id: UUID, expected_version: int
    ) -> bool:
        """Delete a row guarded by optimistic concurrency."""
        pass

    @abstractmethod
    async def bulk_register(
        self, context: ExecutionContext, rows: Iterable[TDataModel]
    ) -> int:
        """Insert many rows through the bulk-encode path.

        Returns:
            Number of rows written
        """
        pass
