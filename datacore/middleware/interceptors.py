"""Ordered interceptors observing repository and service operations.

Every operation runs ``before`` → work → ``after``; on failure each
interceptor's ``on_error`` runs once and the original exception is
re-raised by the caller. Interceptors run in registration order.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import structlog

from datacore.core.error_handlers import create_error_context
from datacore.core.exceptions import BaseError
from datacore.core.ids import TraceId

__all__ = ["Interceptor", "InterceptorChain", "OperationContext", "ServiceInterceptor"]

logger = structlog.get_logger(__name__)


@dataclass
class OperationContext:
    operation: str
    trace_id: TraceId
    layer: str = "repository"
    entity_type: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    started_ns: int = field(default_factory=time.perf_counter_ns)

    def elapsed_ms(self) -> float:
        return round((time.perf_counter_ns() - self.started_ns) / 1_000_000.0, 3)

    def error_context(self) -> dict[str, Any]:
        extra: dict[str, Any] = {"layer": self.layer}
        if "id" in self.arguments:
            extra["entity_id"] = self.arguments["id"]
        return create_error_context(
            self.operation, self.entity_type, trace_id=self.trace_id, **extra
        )

    def annotate(self, error: BaseException) -> None:
        """Fill missing operation fields into a taxonomy error's context."""
        if isinstance(error, BaseError):
            fields = {**self.error_context(), "trace_id": error.trace_id}
            for key, value in fields.items():
                error.context.setdefault(key, value)


class Interceptor:
    """No-op base; override the hooks you need."""

    async def before(self, ctx: OperationContext) -> None:
        return None

    async def after(self, ctx: OperationContext, result: Any) -> None:
        return None

    async def on_error(self, ctx: OperationContext, error: BaseException) -> None:
        return None


class ServiceInterceptor(Interceptor):
    """Adds the service-only hooks."""

    async def validate(self, ctx: OperationContext) -> None:
        """Raise a ValidationError (or any taxonomy error) to abort a mutation."""
        return None

    async def after_find(self, ctx: OperationContext, entity: Any) -> None:
        return None


class InterceptorChain:
    def __init__(self, interceptors: Iterable[Interceptor] = ()) -> None:
        self._interceptors: list[Interceptor] = list(interceptors)

    def register(self, interceptor: Interceptor) -> None:
        self._interceptors.append(interceptor)

    def __iter__(self) -> Iterator[Interceptor]:
        return iter(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)

    async def before(self, ctx: OperationContext) -> None:
        for interceptor in self._interceptors:
            await interceptor.before(ctx)

    async def after(self, ctx: OperationContext, result: Any) -> None:
        for interceptor in self._interceptors:
            await interceptor.after(ctx, result)

    async def validate(self, ctx: OperationContext) -> None:
        for interceptor in self._interceptors:
            hook = getattr(interceptor, "validate", None)
            if hook is not None:
                await hook(ctx)

    async def after_find(self, ctx: OperationContext, entity: Any) -> None:
        for interceptor in self._interceptors:
            hook = getattr(interceptor, "after_find", None)
            if hook is not None:
                await hook(ctx, entity)

    async def on_error(self, ctx: OperationContext, error: BaseException) -> None:
        # A failing observer must not replace the operation's own exception.
        for interceptor in self._interceptors:
            try:
                await interceptor.on_error(ctx, error)
            except Exception:
                logger.exception(
                    "interceptor_on_error_failed",
                    interceptor=type(interceptor).__name__,
                    operation=ctx.operation,
                    trace_id=ctx.trace_id,
                )
