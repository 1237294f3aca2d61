"""SQL clause fragments produced by mappers."""
from dataclasses import dataclass
from enum import Enum


class RelationalOperator(str, Enum):
    """Comparison operators usable in generated predicates."""

    EQUAL = "="
    NOT_EQUAL = "<>"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="


class SortDirection(str, Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"


@dataclass(frozen=True)
class WhereClause:
    """A boolean SQL predicate; combine with ``&`` and ``|``."""

    value: str

    def __and__(self, other: "WhereClause") -> "WhereClause":
        return WhereClause(f"{self.value} AND {other.value}")

    def __or__(self, other: "WhereClause") -> "WhereClause":
        return WhereClause(f"({self.value} OR {other.value})")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OrderByClause:
    """An ORDER BY list; combine with ``+``."""

    value: str

    def __add__(self, other: "OrderByClause") -> "OrderByClause":
        return OrderByClause(f"{self.value}, {other.value}")

    def __str__(self) -> str:
        return self.value
