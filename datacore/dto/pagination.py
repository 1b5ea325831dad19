"""Result containers returned by repositories and services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

__all__ = ["CursorPage", "PaginatedResult", "PaginationMeta", "SearchResult"]


@dataclass(frozen=True)
class PaginationMeta:
    page: int
    limit: int
    total: int
    has_next: bool
    has_prev: bool
    next_cursor: str | None = None
    prev_cursor: str | None = None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }
        if self.next_cursor is not None:
            data["nextCursor"] = self.next_cursor
        if self.prev_cursor is not None:
            data["prevCursor"] = self.prev_cursor
        return data


@dataclass
class PaginatedResult(Generic[T]):
    data: list[T]
    pagination: PaginationMeta

    def to_dict(self) -> dict[str, Any]:
        return {"data": list(self.data), "pagination": self.pagination.to_dict()}


@dataclass
class CursorPage(Generic[T]):
    data: list[T]
    next_cursor: str | None = None
    has_more: bool = False
    # Previous-page detection would need a backward cursor; always False.
    has_prev: bool = False


@dataclass
class SearchResult(Generic[T]):
    data: list[T]
    total: int
    highlights: dict[str, list[str]] | None = field(default=None)
