"""Identity / audit / version envelope shared by every domain entity."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Literal, Protocol, TypeVar, runtime_checkable

from datacore.core.exceptions import DomainValidationError, ValidationIssue
from datacore.core.ids import EntityId, TraceId, UserId, generate_entity_id, generate_trace_id
from datacore.utils.datetime import utcnow

__all__ = ["AuditOperation", "AuditTrail", "Entity", "EntityT", "ValidatableEntity"]

AuditOperation = Literal["CREATE", "UPDATE", "DELETE"]


@runtime_checkable
class ValidatableEntity(Protocol):
    """Capabilities the repository layer relies on."""

    id: EntityId
    version: int
    deleted_at: datetime | None

    def is_deleted(self) -> bool: ...

    def validate(self) -> None: ...


@dataclass(frozen=True)
class AuditTrail:
    operation: AuditOperation
    entity_id: EntityId
    entity_type: str
    timestamp: datetime
    trace_id: TraceId
    changes: dict[str, dict[str, Any]] | None = None
    user_id: UserId | None = None
    metadata: dict[str, Any] | None = None


@dataclass(kw_only=True, eq=False)
class Entity:
    """Base envelope for domain objects.

    Two logical states: active (``deleted_at is None``) and soft-deleted.
    Every mutating method bumps ``version`` and refreshes ``updated_at``;
    ``id`` cannot be reassigned once set. Concrete entities add their own
    fields (declare them with ``@dataclass(kw_only=True, eq=False)``) and
    extend ``validate``.
    """

    id: EntityId = field(default_factory=generate_entity_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    created_by: UserId | None = None
    updated_by: UserId | None = None
    version: int = 1
    deleted_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and "id" in self.__dict__:
            raise AttributeError(f"{type(self).__name__}.id is immutable")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self.id)

    # -- state ---------------------------------------------------------------

    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, actor: UserId | None = None) -> None:
        self.deleted_at = utcnow()
        self.updated_by = actor
        self.mark_as_updated()

    def restore(self, actor: UserId | None = None) -> None:
        self.deleted_at = None
        self.updated_by = actor
        self.mark_as_updated()

    def mark_as_updated(self, actor: UserId | None = None) -> None:
        self.updated_at = utcnow()
        if actor:
            self.updated_by = actor
        self.version += 1

    # -- metadata ------------------------------------------------------------

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value
        self.mark_as_updated()

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def remove_metadata(self, key: str) -> None:
        if key in self.metadata:
            del self.metadata[key]
            self.mark_as_updated()

    # -- comparison ----------------------------------------------------------

    def equals(self, other: Entity) -> bool:
        return self.id == other.id and self.version == other.version

    def is_newer_than(self, other: Entity) -> bool:
        return self.updated_at > other.updated_at

    def clone(self: EntityT) -> EntityT:
        return copy.deepcopy(self)

    # -- validation ----------------------------------------------------------

    def validate(self) -> None:
        """Check the audit envelope. Subclasses call ``super().validate()`` first."""
        issues: list[ValidationIssue] = []
        if not self.id:
            issues.append({"field": "id", "message": "id must not be empty", "code": "required"})
        if self.version < 1:
            issues.append(
                {
                    "field": "version",
                    "message": "version must be >= 1",
                    "code": "too_small",
                    "value": self.version,
                }
            )
        if self.updated_at < self.created_at:
            issues.append(
                {
                    "field": "updated_at",
                    "message": "updated_at precedes created_at",
                    "code": "invalid_timestamp",
                }
            )
        if self.deleted_at is not None and self.deleted_at < self.created_at:
            issues.append(
                {
                    "field": "deleted_at",
                    "message": "deleted_at precedes created_at",
                    "code": "invalid_timestamp",
                }
            )
        if issues:
            raise DomainValidationError(
                f"{self.get_entity_type()} failed validation", self.get_entity_type(), issues
            )

    # -- serialization -------------------------------------------------------

    def get_entity_type(self) -> str:
        return type(self).__name__

    def to_plain_object(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def create_audit_trail(
        self,
        operation: AuditOperation,
        changes: dict[str, dict[str, Any]] | None = None,
        user_id: UserId | None = None,
        trace_id: TraceId | None = None,
    ) -> AuditTrail:
        return AuditTrail(
            operation=operation,
            entity_id=self.id,
            entity_type=self.get_entity_type(),
            timestamp=utcnow(),
            trace_id=trace_id or generate_trace_id(),
            changes=changes,
            user_id=user_id,
            metadata=dict(self.metadata) if self.metadata else None,
        )


EntityT = TypeVar("EntityT", bound=Entity)
