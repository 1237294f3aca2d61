"""Migration value objects."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Migration:
    """
    One versioned schema change.

    Attributes:
        version: Strictly positive, unique ordering key
        name: Human-readable name taken from the script file
        up_sql: Script applying the change
        down_sql: Script reverting it, or None if irreversible
    """

    version: int
    name: str
    up_sql: str
    down_sql: Optional[str] = None

    @property
    def is_reversible(self) -> bool:
        return self.down_sql is not None

    def __str__(self) -> str:
        return f"{self.version}__{self.name}"


@dataclass
class MigrationStatus:
    """Snapshot of the ledger against the known migrations."""

    applied: List[int] = field(default_factory=list)
    pending: List[int] = field(default_factory=list)
    last_applied_version: Optional[int] = None

    @property
    def is_up_to_date(self) -> bool:
        return not self.pending
