"""Pagination value object."""

from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results from a larger ordered collection."""

    items: List[T] = field(default_factory=list)
    page: int = 0
    size: int = 10
    total: int = 0

    def __post_init__(self) -> None:
        """Validate page bounds."""
        if self.page < 0:
            raise ValueError("Page index cannot be negative")
        if self.size < 1:
            raise ValueError("Page size must be at least 1")
        if self.total < 0:
            raise ValueError("Total cannot be negative")

    @property
    def total_pages(self) -> int:
        """Get number of pages for the collection."""
        return -(-self.total // self.size)

    @property
    def has_next(self) -> bool:
        """Check if another page follows this one."""
        return self.page + 1 < self.total_pages
