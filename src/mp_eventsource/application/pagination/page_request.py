"""Application pagination – PageRequest, Sort, SortDirection."""
from __future__ import annotations

import dataclasses
from enum import Enum


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @property
    def sign(self) -> int:
        return 1 if self is SortDirection.ASC else -1


@dataclasses.dataclass(frozen=True)
class Sort:
    """Single sort criterion."""
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclasses.dataclass(frozen=True)
class PageRequest:
    """1-based offset pagination parameters."""
    page: int = 1
    size: int = 20
    sorts: tuple[Sort, ...] = ()

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.size < 1 or self.size > 1000:
            raise ValueError("size must be between 1 and 1000")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    def sort_spec(self) -> dict[str, int]:
        """Sorts as an ordered ``{field: 1 | -1}`` mapping."""
        return {s.field: s.direction.sign for s in self.sorts}


__all__ = ["PageRequest", "Sort", "SortDirection"]
