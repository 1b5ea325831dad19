"""Uniform response envelope."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from datacore.core.ids import generate_trace_id
from datacore.dto.pagination import PaginatedResult

__all__ = ["ApiResponse", "create_paginated_response", "create_success_response"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ApiResponse(BaseModel):
    """Envelope shared by successful and failed operations.

    Failed responses carry the error ``code`` in ``error``; ``details`` holds
    kind-specific structure for client-class (4xx) errors only.
    """

    success: bool = Field(description="Whether the operation succeeded")
    data: Any = Field(default=None, description="Payload on success")
    error: str | None = Field(default=None, description="Error code on failure")
    message: str | None = Field(default=None, description="Human readable message")
    status_code: int | None = Field(default=None, description="HTTP-style status")
    details: dict[str, Any] | None = Field(default=None, description="Kind-specific detail")
    timestamp: datetime = Field(default_factory=_utcnow)
    trace_id: str = Field(default_factory=generate_trace_id, description="Correlation id")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "success": False,
                    "error": "NOT_FOUND",
                    "message": "User with identifier 'u1' not found",
                    "statusCode": 404,
                    "details": {"resource": "User", "identifier": "u1"},
                    "timestamp": "2025-09-01T12:34:56Z",
                    "traceId": "5f0c6c1e-9d7b-4d8e-a1f1-0c2b9a7d1e11",
                }
            ]
        },
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_success_response(
    data: Any, message: str | None = None, trace_id: str | None = None
) -> ApiResponse:
    return ApiResponse(
        success=True,
        data=data,
        message=message,
        trace_id=trace_id or generate_trace_id(),
    )


def create_paginated_response(
    result: PaginatedResult[Any], trace_id: str | None = None
) -> ApiResponse:
    meta = result.pagination
    pagination = meta.to_dict()
    pagination["totalPages"] = meta.total_pages
    return create_success_response(
        {"items": list(result.data), "pagination": pagination}, trace_id=trace_id
    )
