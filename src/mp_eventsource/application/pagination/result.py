"""Application pagination – raw and hydrated paginated query results."""
from __future__ import annotations

import dataclasses
import math
from typing import Any, Callable, Generic, TypeVar

from mp_eventsource.application.pagination.page_request import PageRequest

T = TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class ResultRange:
    """Half-open ``[from_, to)`` window of a result set (0-based)."""
    from_: int = 0
    to: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"from": self.from_, "to": self.to}


@dataclasses.dataclass(frozen=True)
class PaginatedQueryResult:
    """One page of stored documents, each reduced to ``{"events": [...]}``."""

    documents: list[dict[str, Any]]
    count: int
    range: ResultRange
    total: int

    @classmethod
    def empty(cls, total: int = 0) -> "PaginatedQueryResult":
        return cls(documents=[], count=0, range=ResultRange(), total=total)


@dataclasses.dataclass(frozen=True)
class SearchResult(Generic[T]):
    """One page of hydrated entities."""

    entities: list[T]
    count: int
    range: ResultRange
    total: int


@dataclasses.dataclass
class Page(Generic[T]):
    """Page of entities with navigation properties, built from a search."""

    items: list[T]
    total: int
    page: int
    size: int

    @classmethod
    def from_search(cls, result: SearchResult[T], request: PageRequest) -> "Page[T]":
        return cls(items=list(result.entities), total=result.total, page=request.page, size=request.size)

    @property
    def total_pages(self) -> int:
        if self.size <= 0 or self.total <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def map(self, fn: Callable[[T], Any]) -> "Page[Any]":
        """Return a new :class:`Page` with each item transformed by *fn*."""
        return Page(items=[fn(item) for item in self.items], total=self.total, page=self.page, size=self.size)


__all__ = ["Page", "PaginatedQueryResult", "ResultRange", "SearchResult"]
