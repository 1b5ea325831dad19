"""Audit-trail emission for mutating repository operations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from datacore.core.ids import EntityId, UserId
from datacore.middleware.interceptors import Interceptor, OperationContext
from datacore.models.entity import AuditOperation, AuditTrail, Entity

__all__ = ["AuditSink", "AuditTrailInterceptor"]

AuditSink = Callable[[AuditTrail], Awaitable[None]]

_OPERATIONS: dict[str, AuditOperation] = {
    "create": "CREATE",
    "update": "UPDATE",
    "delete": "DELETE",
}

logger = structlog.get_logger(__name__)


def _changes(data: Any, previous: Any = None) -> dict[str, dict[str, Any]] | None:
    # "from" stays None when no pre-image was captured for the operation.
    if not isinstance(data, dict) or not data:
        return None
    return {
        key: {"from": getattr(previous, key, None), "to": value} for key, value in data.items()
    }


class AuditTrailInterceptor(Interceptor):
    """Build an ``AuditTrail`` after every successful create/update/delete.

    Records go to ``sink`` when given; they are always logged as
    event="audit_trail". Operations whose options set ``audit_trail=False``
    are skipped.
    """

    def __init__(self, sink: AuditSink | None = None) -> None:
        self._sink = sink

    async def after(self, ctx: OperationContext, result: Any) -> None:
        operation = _OPERATIONS.get(ctx.operation)
        if operation is None:
            return
        options = ctx.arguments.get("options")
        if getattr(options, "audit_trail", None) is False:
            return

        actor: UserId | None = getattr(options, "actor", None)
        if isinstance(result, Entity):
            trail = result.create_audit_trail(
                operation,
                changes=_changes(ctx.arguments.get("data"), ctx.arguments.get("previous")),
                user_id=actor,
                trace_id=ctx.trace_id,
            )
        else:
            trail = AuditTrail(
                operation=operation,
                entity_id=EntityId(str(ctx.arguments.get("id"))),
                entity_type=ctx.entity_type or "Entity",
                timestamp=datetime.now(UTC),
                trace_id=ctx.trace_id,
                user_id=actor,
            )

        logger.info(
            "audit_trail",
            audit_operation=trail.operation,
            entity_id=trail.entity_id,
            entity_type=trail.entity_type,
            user_id=trail.user_id,
            trace_id=trail.trace_id,
        )
        if self._sink is not None:
            await self._sink(trail)
