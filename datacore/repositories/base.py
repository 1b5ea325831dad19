"""Policy-enforcing CRUD façade over an ``EntityStore``."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from datacore.core.config import settings
from datacore.core.exceptions import ValidationError
from datacore.core.ids import EntityId, TraceId, generate_entity_id, generate_trace_id
from datacore.dto.pagination import PaginatedResult, SearchResult
from datacore.logging import current_trace_id, trace_context
from datacore.middleware.audit import AuditSink, AuditTrailInterceptor
from datacore.middleware.interceptors import Interceptor, InterceptorChain, OperationContext
from datacore.models.entity import Entity
from datacore.query.filters import FilterCondition, FilterCriteria, ensure_criteria
from datacore.repositories.interfaces import EntityStore
from datacore.repositories.options import (
    CreateOptions,
    DeleteOptions,
    FindOptions,
    ListOptions,
    SearchQuery,
    UpdateOptions,
)
from datacore.utils.datetime import utcnow
from datacore.utils.paging import calculate_offset, create_pagination, validate_pagination

__all__ = ["Repository", "RepositoryConfig"]

EntityT = TypeVar("EntityT", bound=Entity)
R = TypeVar("R")

CriteriaInput = FilterCriteria | Mapping[str, Any] | None


@dataclass(frozen=True)
class RepositoryConfig:
    """Policy switches.

    Only ``soft_delete`` changes the repository's own control flow;
    ``optimistic_locking`` is forwarded to the store, which performs the
    compare-and-swap. ``tenant_isolation``, ``caching`` and ``cache_ttl``
    are declared for adapters and interceptors to read.
    """

    soft_delete: bool = True
    timestamps: bool = True
    audit_trail: bool = False
    tenant_isolation: bool = False
    optimistic_locking: bool = True
    caching: bool = False
    cache_ttl: int = 300
    soft_delete_field: str = "deleted_at"


class Repository(Generic[EntityT]):
    """Uniform operation shape around the storage primitives.

    Each public method runs interceptors' ``before``, the primitive, then
    ``after``. Any failure triggers ``on_error`` once and is re-raised
    unchanged; nothing is retried here.
    """

    def __init__(
        self,
        store: EntityStore[EntityT],
        config: RepositoryConfig | None = None,
        *,
        entity_type: str | None = None,
        id_generator: Callable[[], EntityId] = generate_entity_id,
        interceptors: Iterable[Interceptor] = (),
        audit_sink: AuditSink | None = None,
    ) -> None:
        self._store = store
        self.config = config or RepositoryConfig()
        self.entity_type = entity_type
        self._id_generator = id_generator
        self.interceptors = InterceptorChain(interceptors)
        if self.config.audit_trail:
            self.interceptors.register(AuditTrailInterceptor(audit_sink))

    @property
    def store(self) -> EntityStore[EntityT]:
        return self._store

    # -- plumbing ------------------------------------------------------------

    def _context(self, operation: str, **arguments: Any) -> OperationContext:
        trace_id = current_trace_id() or generate_trace_id()
        return OperationContext(
            operation=operation,
            trace_id=TraceId(trace_id),
            layer="repository",
            entity_type=self.entity_type,
            arguments=arguments,
        )

    async def _run(self, ctx: OperationContext, work: Callable[[], Awaitable[R]]) -> R:
        with trace_context(ctx.trace_id):
            try:
                await self.interceptors.before(ctx)
                result = await work()
                await self.interceptors.after(ctx, result)
                return result
            except Exception as exc:
                ctx.annotate(exc)
                await self.interceptors.on_error(ctx, exc)
                raise

    def _hides_deleted(self, options: FindOptions | None) -> bool:
        return self.config.soft_delete and not (options is not None and options.with_deleted)

    def apply_soft_delete_filter(
        self, criteria: CriteriaInput = None, options: FindOptions | None = None
    ) -> FilterCriteria:
        """Return the criteria actually sent to storage for a read.

        With soft delete on and ``with_deleted`` off, ``<field> isNull`` is
        added to the top-level AND; otherwise the criteria pass unchanged.
        """
        effective = ensure_criteria(criteria)
        if not self._hides_deleted(options):
            return effective
        return effective.with_conditions(
            FilterCondition(self.config.soft_delete_field, "isNull")
        )

    def _prepare_create(
        self, data: Mapping[str, Any], options: CreateOptions | None
    ) -> dict[str, Any]:
        payload = dict(data)
        if not payload.get("id"):
            payload["id"] = self._id_generator()
        if self.config.timestamps:
            now = utcnow()
            payload.setdefault("created_at", now)
            payload.setdefault("updated_at", now)
        payload["version"] = 1
        if options is not None and options.actor:
            payload.setdefault("created_by", options.actor)
            payload.setdefault("updated_by", options.actor)
        if options is not None and options.metadata:
            payload["metadata"] = {**(payload.get("metadata") or {}), **options.metadata}
        return payload

    def _prepare_update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None
    ) -> tuple[dict[str, Any], UpdateOptions]:
        payload = dict(data)
        options = options or UpdateOptions()
        if "id" in payload:
            if payload.pop("id") != id:
                raise ValidationError(
                    "Entity id cannot be changed",
                    [{"field": "id", "message": "id is immutable", "code": "immutable"}],
                )
        # A version in the payload is the version the caller read.
        read_version = payload.pop("version", None)
        if options.expected_version is None and read_version is not None:
            options = replace(options, expected_version=read_version)
        if options.optimistic_locking is None:
            options = replace(options, optimistic_locking=self.config.optimistic_locking)
        if self.config.timestamps:
            payload["updated_at"] = utcnow()
        if options.actor:
            payload["updated_by"] = options.actor
        return payload, options

    # -- operations ----------------------------------------------------------

    async def create(
        self, data: Mapping[str, Any], options: CreateOptions | None = None
    ) -> EntityT:
        payload = self._prepare_create(data, options)
        ctx = self._context("create", data=payload, options=options)
        return await self._run(ctx, lambda: self._store.execute_create(payload, options))

    async def find_by_id(self, id: EntityId, options: FindOptions | None = None) -> EntityT | None:
        hides_deleted = self._hides_deleted(options)
        store_options = replace(options or FindOptions(), with_deleted=not hides_deleted)
        ctx = self._context("find_by_id", id=id, options=options)

        async def work() -> EntityT | None:
            entity = await self._store.execute_find_by_id(id, store_options)
            if entity is not None and hides_deleted and entity.is_deleted():
                return None
            return entity

        return await self._run(ctx, work)

    async def find_many(
        self, criteria: CriteriaInput = None, options: FindOptions | None = None
    ) -> list[EntityT]:
        ctx = self._context("find_many", criteria=criteria, options=options)

        async def work() -> list[EntityT]:
            effective = self.apply_soft_delete_filter(criteria, options)
            return await self._store.execute_find_many(effective, options)

        return await self._run(ctx, work)

    async def update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None = None
    ) -> EntityT:
        ctx = self._context("update", id=id, data=dict(data), options=options)

        async def work() -> EntityT:
            payload, effective_options = self._prepare_update(id, data, options)
            ctx.arguments["data"] = payload
            if self.config.audit_trail and getattr(options, "audit_trail", None) is not False:
                ctx.arguments["previous"] = await self._store.execute_find_by_id(
                    id, FindOptions(with_deleted=True)
                )
            return await self._store.execute_update(id, payload, effective_options)

        return await self._run(ctx, work)

    async def delete(self, id: EntityId, options: DeleteOptions | None = None) -> None:
        effective = options or DeleteOptions()
        if effective.soft is None:
            effective = replace(effective, soft=self.config.soft_delete)
        ctx = self._context("delete", id=id, options=effective)
        await self._run(ctx, lambda: self._store.execute_delete(id, effective))

    async def count(self, criteria: CriteriaInput = None, options: FindOptions | None = None) -> int:
        ctx = self._context("count", criteria=criteria, options=options)

        async def work() -> int:
            return await self._store.execute_count(self.apply_soft_delete_filter(criteria, options))

        return await self._run(ctx, work)

    async def exists(self, id: EntityId) -> bool:
        return await self.find_by_id(id) is not None

    async def list(self, options: ListOptions | None = None) -> PaginatedResult[EntityT]:
        options = options or ListOptions()
        ctx = self._context("list", options=options)

        async def work() -> PaginatedResult[EntityT]:
            page = options.page if options.page is not None else 1
            limit = (
                options.limit if options.limit is not None else settings.default_page_limit
            )
            validate_pagination(page, limit)
            effective = self.apply_soft_delete_filter(options.filter, options)
            window = replace(options, page=page, limit=limit, offset=calculate_offset(page, limit))
            entities, total = await asyncio.gather(
                self._store.execute_find_many(effective, window),
                self._store.execute_count(effective),
            )
            return create_pagination(entities, total, page=page, limit=limit)

        return await self._run(ctx, work)

    async def search(self, query: SearchQuery) -> SearchResult[EntityT]:
        ctx = self._context("search", query=query)
        return await self._run(ctx, lambda: self._store.execute_search(query))
