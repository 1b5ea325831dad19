"""Error taxonomy shared by the repository, service and handler layers.

Every error carries an HTTP-style ``status_code``, a stable ``code``, the
``trace_id`` of the operation that raised it and an optional structured
``context``. Kinds differ in whether a caller may retry (``is_retryable``)
and in their operational impact (``get_severity``).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, ClassVar, Literal, TypedDict

from datacore.core.ids import TraceId, generate_trace_id
from datacore.logging import current_trace_id

__all__ = [
    "BaseError",
    "BusinessRuleError",
    "ConcurrencyError",
    "ConflictError",
    "DatabaseError",
    "DomainValidationError",
    "ForbiddenError",
    "InternalServerError",
    "InvariantViolationError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "ResourceExhaustedError",
    "Severity",
    "TimeoutError",
    "UnauthorizedError",
    "ValidationError",
    "ValidationIssue",
]

Severity = Literal["low", "medium", "high", "critical"]


class ValidationIssue(TypedDict, total=False):
    field: str
    message: str
    code: str
    value: Any


class BaseError(Exception):
    """Base class for all taxonomy errors. Not raised directly."""

    code: ClassVar[str]
    status_code: ClassVar[int]
    retryable: ClassVar[bool] = False
    severity: ClassVar[Severity] = "medium"

    def __init__(self, message: str, context: Mapping[str, Any] | None = None) -> None:
        if type(self) is BaseError:
            raise TypeError("BaseError is abstract; raise one of its subclasses")
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.trace_id: TraceId = TraceId(
            self.context.get("trace_id") or current_trace_id() or generate_trace_id()
        )
        self.timestamp = datetime.now(UTC)

    @property
    def name(self) -> str:
        return type(self).__name__

    def is_retryable(self) -> bool:
        return self.retryable

    def get_severity(self) -> Severity:
        return self.severity

    def details(self) -> dict[str, Any]:
        """Kind-specific structured detail; empty for kinds without any."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context or None,
            **self.details(),
        }

    def __repr__(self) -> str:
        return f"{self.name}(code={self.code!r}, message={self.message!r}, trace_id={self.trace_id!r})"


class ValidationError(BaseError):
    code = "VALIDATION_ERROR"
    status_code = 400
    severity = "low"

    def __init__(
        self,
        message: str,
        issues: list[ValidationIssue] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.issues: list[ValidationIssue] = list(issues or [])

    def details(self) -> dict[str, Any]:
        return {"issues": self.issues}


class DomainValidationError(ValidationError):
    """Raised by ``Entity.validate`` when an entity's own invariants fail."""

    def __init__(
        self,
        message: str,
        entity_type: str,
        issues: list[ValidationIssue] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, issues, context)
        self.entity_type = entity_type

    def details(self) -> dict[str, Any]:
        return {**super().details(), "entity_type": self.entity_type}


class NotFoundError(BaseError):
    code = "NOT_FOUND"
    status_code = 404
    severity = "low"

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        if identifier:
            message = f"{resource} with identifier '{identifier}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, context)
        self.resource = resource
        self.identifier = identifier

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "identifier": self.identifier}


class ConflictError(BaseError):
    code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str,
        conflict_type: str = "RESOURCE_CONFLICT",
        conflicting_value: Any = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.conflict_type = conflict_type
        self.conflicting_value = conflicting_value

    def details(self) -> dict[str, Any]:
        return {"conflict_type": self.conflict_type, "conflicting_value": self.conflicting_value}


class UnauthorizedError(BaseError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Unauthorized", context: Mapping[str, Any] | None = None):
        super().__init__(message, context)


class ForbiddenError(BaseError):
    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "Forbidden", context: Mapping[str, Any] | None = None):
        super().__init__(message, context)


class RateLimitError(BaseError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.retry_after = retry_after

    def details(self) -> dict[str, Any]:
        return {"retry_after": self.retry_after}


class InternalServerError(BaseError):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    retryable = True
    severity = "high"

    def __init__(
        self, message: str = "Internal server error", context: Mapping[str, Any] | None = None
    ):
        super().__init__(message, context)


class DatabaseError(BaseError):
    code = "DATABASE_ERROR"
    status_code = 500
    retryable = True
    severity = "high"

    def __init__(
        self,
        message: str,
        operation: str,
        query: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.operation = operation
        self.query = query

    def details(self) -> dict[str, Any]:
        return {"operation": self.operation, "query": self.query}


class NetworkError(BaseError):
    code = "NETWORK_ERROR"
    status_code = 503
    retryable = True
    severity = "high"

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        method: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.endpoint = endpoint
        self.method = method

    def details(self) -> dict[str, Any]:
        return {"endpoint": self.endpoint, "method": self.method}


class BusinessRuleError(BaseError):
    code = "BUSINESS_RULE_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str,
        rule: str,
        rule_params: Mapping[str, Any] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.rule = rule
        self.rule_params = dict(rule_params) if rule_params is not None else None

    def details(self) -> dict[str, Any]:
        return {"rule": self.rule, "rule_params": self.rule_params}


class ConcurrencyError(BaseError):
    """Optimistic-locking conflict: the stored version moved under the writer."""

    code = "CONCURRENCY_ERROR"
    status_code = 409
    retryable = True

    def __init__(
        self,
        message: str,
        expected_version: int,
        actual_version: int,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.expected_version = expected_version
        self.actual_version = actual_version

    def details(self) -> dict[str, Any]:
        return {
            "expected_version": self.expected_version,
            "actual_version": self.actual_version,
        }


class InvariantViolationError(BaseError):
    code = "INVARIANT_VIOLATION"
    status_code = 422
    severity = "high"

    def __init__(
        self,
        message: str,
        invariant: str,
        aggregate_id: str,
        aggregate_type: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.invariant = invariant
        self.aggregate_id = aggregate_id
        self.aggregate_type = aggregate_type

    def details(self) -> dict[str, Any]:
        return {
            "invariant": self.invariant,
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
        }


class ResourceExhaustedError(BaseError):
    code = "RESOURCE_EXHAUSTED"
    status_code = 429
    retryable = True

    def __init__(
        self,
        message: str,
        resource: str,
        limit: int,
        current: int,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.resource = resource
        self.limit = limit
        self.current = current

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "limit": self.limit, "current": self.current}


class TimeoutError(BaseError):  # noqa: A001
    code = "TIMEOUT_ERROR"
    status_code = 408
    retryable = True

    def __init__(
        self,
        message: str,
        operation: str,
        timeout_ms: int,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.operation = operation
        self.timeout_ms = timeout_ms

    def details(self) -> dict[str, Any]:
        return {"operation": self.operation, "timeout_ms": self.timeout_ms}
