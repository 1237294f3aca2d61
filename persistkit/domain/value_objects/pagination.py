"""Pagination value object."""
from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass(frozen=True)
class Pagination:
    """
    Immutable page request.

    Pages are 1-indexed. ``Pagination.ALL`` requests every row
    (no LIMIT/OFFSET is rendered).
    """

    page: int = 1
    page_size: Optional[int] = 100

    ALL: ClassVar["Pagination"]

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"Page must be >= 1, got: {self.page}")
        if self.page_size is not None and self.page_size < 1:
            raise ValueError(f"Page size must be >= 1, got: {self.page_size}")

    @property
    def index(self) -> int:
        """Zero-based page index."""
        return self.page - 1

    @property
    def offset(self) -> int:
        """Number of rows to skip."""
        if self.page_size is None:
            return 0
        return self.index * self.page_size

    @property
    def is_unbounded(self) -> bool:
        return self.page_size is None

    def next_page(self) -> "Pagination":
        """Return the request for the following page."""
        if self.is_unbounded:
            raise ValueError("Unbounded pagination has no next page")
        return Pagination(page=self.page + 1, page_size=self.page_size)


Pagination.ALL = Pagination(page=1, page_size=None)
