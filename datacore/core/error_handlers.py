"""Failure → log record → response envelope pipeline.

``handle_error`` is the single place where an arbitrary exception becomes a
client-facing ``ApiResponse``. Client-class (4xx) errors keep their message
and structured details; server-class (5xx) errors are answered with a
generic message, and the full detail lives only in the log record keyed by
``trace_id``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

import structlog

from datacore.core.config import settings
from datacore.core.exceptions import BaseError, InternalServerError, Severity
from datacore.core.ids import generate_trace_id
from datacore.dto.response import ApiResponse

__all__ = [
    "create_error_context",
    "error_to_response",
    "handle_error",
    "log_error",
    "severity_to_log_level",
    "should_expose_message",
    "transform_to_base_error",
]

logger = structlog.get_logger(__name__)

LogLevel = Literal["warning", "error", "critical"]

_SEVERITY_LEVELS: dict[str, LogLevel] = {
    "low": "warning",
    "medium": "error",
    "high": "error",
    "critical": "critical",
}


def create_error_context(
    operation: str | None = None,
    entity_type: str | None = None,
    trace_id: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    context: dict[str, Any] = {"trace_id": trace_id or generate_trace_id()}
    if operation:
        context["operation"] = operation
    if entity_type:
        context["entity_type"] = entity_type
    context.update(extra)
    return context


def transform_to_base_error(
    error: BaseException | str | object, context: Mapping[str, Any] | None = None
) -> BaseError:
    """Pass taxonomy errors through; coerce everything else to InternalServerError."""
    if isinstance(error, BaseError):
        return error
    if isinstance(error, BaseException):
        transformed = InternalServerError(str(error) or type(error).__name__, context)
        transformed.__cause__ = error
        return transformed
    if isinstance(error, str):
        return InternalServerError(error, context)
    return InternalServerError("An unknown error occurred", context)


def should_expose_message(error: BaseError) -> bool:
    return 400 <= error.status_code < 500


def severity_to_log_level(severity: Severity | str) -> LogLevel:
    return _SEVERITY_LEVELS.get(severity, "error")


def log_error(error: BaseError, context: Mapping[str, Any] | None = None) -> None:
    level = severity_to_log_level(error.get_severity())
    log = getattr(logger, level)
    log(
        "error_handled",
        error_name=error.name,
        error_code=error.code,
        error_message=error.message,
        status_code=error.status_code,
        severity=error.get_severity(),
        retryable=error.is_retryable(),
        trace_id=error.trace_id,
        details=error.details() or None,
        error_context=error.context or None,
        context=dict(context) if context else None,
        exc_info=error if error.status_code >= 500 else None,
    )


def error_to_response(error: BaseError) -> ApiResponse:
    if should_expose_message(error):
        message = error.message
        details = error.details() or None
    else:
        message = settings.generic_error_message
        details = None
    return ApiResponse(
        success=False,
        error=error.code,
        message=message,
        status_code=error.status_code,
        details=details,
        timestamp=error.timestamp,
        trace_id=error.trace_id,
    )


def handle_error(
    error: BaseException | str | object, context: Mapping[str, Any] | None = None
) -> ApiResponse:
    processed = transform_to_base_error(error, context)
    log_error(processed, context)
    return error_to_response(processed)
