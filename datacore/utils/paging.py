# datacore/utils/paging.py
from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from datacore.core.config import settings
from datacore.core.exceptions import ValidationError, ValidationIssue
from datacore.dto.pagination import CursorPage, PaginatedResult, PaginationMeta

__all__ = [
    "PageWindow",
    "calculate_offset",
    "calculate_total_pages",
    "create_cursor_page",
    "create_pagination",
    "get_pagination_meta",
    "validate_pagination",
]

T = TypeVar("T")


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    total: int
    total_pages: int
    offset: int
    has_next: bool
    has_prev: bool
    is_first_page: bool
    is_last_page: bool


def calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def calculate_total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def _issue(field: str, message: str, code: str, value: int) -> ValidationIssue:
    return {"field": field, "message": message, "code": code, "value": value}


def validate_pagination(
    page: int | None = None,
    limit: int | None = None,
    *,
    max_limit: int | None = None,
) -> None:
    """Reject ``page < 1``, ``limit < 1`` and ``limit > max_limit``.

    ``None`` means "use the default" and is always accepted. All violations
    are reported together as issues of a single ``ValidationError``.
    """
    cap = max_limit if max_limit is not None else settings.max_page_limit
    issues: list[ValidationIssue] = []
    if page is not None and page < 1:
        issues.append(_issue("page", "Page must be greater than 0", "too_small", page))
    if limit is not None and limit < 1:
        issues.append(_issue("limit", "Limit must be greater than 0", "too_small", limit))
    elif limit is not None and limit > cap:
        issues.append(_issue("limit", f"Limit cannot exceed {cap}", "too_big", limit))
    if issues:
        raise ValidationError("Invalid pagination options", issues)


def get_pagination_meta(page: int, limit: int, total: int) -> PageWindow:
    total_pages = calculate_total_pages(total, limit)
    return PageWindow(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        offset=calculate_offset(page, limit),
        has_next=page < total_pages,
        has_prev=page > 1,
        is_first_page=page == 1,
        is_last_page=page == total_pages,
    )


def create_pagination(
    data: Sequence[T],
    total: int,
    *,
    page: int | None = None,
    limit: int | None = None,
) -> PaginatedResult[T]:
    page = page or 1
    limit = limit or settings.default_page_limit
    window = get_pagination_meta(page, limit, total)
    return PaginatedResult(
        data=list(data),
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            has_next=window.has_next,
            has_prev=window.has_prev,
        ),
    )


def create_cursor_page(
    items: Sequence[T],
    get_cursor: Callable[[T], str],
    limit: int,
) -> CursorPage[T]:
    """Build a cursor page from an over-fetched sequence.

    Callers request ``limit + 1`` rows; an extra row proves another page
    exists without a count query. It is dropped and ``next_cursor`` is taken
    from the last row kept. ``has_prev`` is always ``False``.
    """
    has_more = len(items) > limit
    kept = list(items[:limit]) if has_more else list(items)
    next_cursor = get_cursor(kept[-1]) if has_more and kept else None
    return CursorPage(data=kept, next_cursor=next_cursor, has_more=has_more, has_prev=False)
