"""Base row shape shared by every persisted aggregate."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(kw_only=True)
class DataModel:
    """
    Persisted shape of one aggregate.

    Rows are created by a factory at write time and hydrated by a
    mapper at read time; callers never mutate hydrated rows in place.

    ``tenant_code`` never changes after the first write, and
    ``entity_version`` strictly increases on every successful mutation.
    """

    id: UUID
    tenant_code: UUID

    # Audit block
    created_by: str
    created_at: datetime
    last_changed_by: Optional[str] = None
    last_changed_at: Optional[datetime] = None
    last_changed_execution_origin: Optional[str] = None
    last_changed_correlation_id: Optional[UUID] = None
    last_changed_business_operation_code: Optional[str] = None

    # Optimistic concurrency token
    entity_version: int = 1
