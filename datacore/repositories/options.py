"""Per-call option objects for repository and service operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from datacore.core.ids import UserId
from datacore.query.builder import SortCriteria
from datacore.query.filters import FilterCriteria

__all__ = [
    "CreateOptions",
    "DeleteOptions",
    "FindOptions",
    "ListOptions",
    "SearchQuery",
    "UpdateOptions",
]


@dataclass
class CreateOptions:
    skip_validation: bool = False
    skip_events: bool = False
    audit_trail: bool | None = None
    metadata: dict[str, Any] | None = None
    actor: UserId | None = None


@dataclass
class UpdateOptions(CreateOptions):
    # None means "follow the repository's optimistic-locking policy".
    optimistic_locking: bool | None = None
    expected_version: int | None = None
    partial: bool = True


@dataclass
class DeleteOptions:
    # None means "follow the repository's soft-delete policy".
    soft: bool | None = None
    skip_events: bool = False
    audit_trail: bool | None = None
    cascade: bool = False
    actor: UserId | None = None


@dataclass
class FindOptions:
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    with_deleted: bool = False
    for_update: bool = False
    limit: int | None = None
    offset: int | None = None
    sort: tuple[SortCriteria, ...] = ()


@dataclass
class SearchQuery:
    query: str | None = None
    fields: tuple[str, ...] = ()
    fuzzy: bool = False
    limit: int | None = None
    offset: int | None = None


@dataclass
class ListOptions(FindOptions):
    page: int | None = None
    filter: FilterCriteria | None = None
    search: SearchQuery | None = field(default=None)
