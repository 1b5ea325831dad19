"""Generic data-access layer: entities, filters, paging, repositories and errors."""

from datacore.core.exceptions import (
    BaseError,
    BusinessRuleError,
    ConcurrencyError,
    ConflictError,
    DatabaseError,
    DomainValidationError,
    ForbiddenError,
    InternalServerError,
    InvariantViolationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResourceExhaustedError,
    TimeoutError,
    UnauthorizedError,
    ValidationError,
)
from datacore.models.entity import AuditTrail, Entity
from datacore.query.filters import FilterBuilder, FilterCondition, FilterCriteria
from datacore.repositories.base import Repository, RepositoryConfig
from datacore.services.base import Service, ServiceConfig

__all__ = [
    "AuditTrail",
    "BaseError",
    "BusinessRuleError",
    "ConcurrencyError",
    "ConflictError",
    "DatabaseError",
    "DomainValidationError",
    "Entity",
    "FilterBuilder",
    "FilterCondition",
    "FilterCriteria",
    "ForbiddenError",
    "InternalServerError",
    "InvariantViolationError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "Repository",
    "RepositoryConfig",
    "ResourceExhaustedError",
    "Service",
    "ServiceConfig",
    "TimeoutError",
    "UnauthorizedError",
    "ValidationError",
]
