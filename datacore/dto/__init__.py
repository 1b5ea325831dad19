"""Public DTO exports."""

from .pagination import CursorPage, PaginatedResult, PaginationMeta, SearchResult
from .response import ApiResponse, create_paginated_response, create_success_response

__all__ = [
    "ApiResponse",
    "CursorPage",
    "PaginatedResult",
    "PaginationMeta",
    "SearchResult",
    "create_paginated_response",
    "create_success_response",
]
