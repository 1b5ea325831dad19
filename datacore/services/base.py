"""Validation / orchestration layer over a repository."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from datacore.core.ids import EntityId, generate_trace_id
from datacore.dto.pagination import PaginatedResult, SearchResult
from datacore.logging import trace_context
from datacore.middleware.interceptors import InterceptorChain, OperationContext, ServiceInterceptor
from datacore.models.entity import Entity
from datacore.repositories.options import (
    CreateOptions,
    DeleteOptions,
    FindOptions,
    ListOptions,
    SearchQuery,
    UpdateOptions,
)

__all__ = ["RepositoryPort", "Service", "ServiceConfig"]

EntityT = TypeVar("EntityT", bound=Entity)
R = TypeVar("R")


class RepositoryPort(Protocol[EntityT]):
    async def create(
        self, data: Mapping[str, Any], options: CreateOptions | None = None
    ) -> EntityT: ...

    async def find_by_id(
        self, id: EntityId, options: FindOptions | None = None
    ) -> EntityT | None: ...

    async def update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None = None
    ) -> EntityT: ...

    async def delete(self, id: EntityId, options: DeleteOptions | None = None) -> None: ...

    async def list(self, options: ListOptions | None = None) -> PaginatedResult[EntityT]: ...

    async def search(self, query: SearchQuery) -> SearchResult[EntityT]: ...


@dataclass(frozen=True)
class ServiceConfig:
    validation: bool = True
    events: bool = False
    audit_trail: bool = False
    caching: bool = False
    retries: int = 0


class Service(Generic[EntityT]):
    """Runs interceptors around each repository call.

    Mutations run ``before`` → ``validate`` (when enabled) → repository →
    ``after``; reads call ``after_find`` once per returned entity. Every call
    gets a fresh trace id, bound to the log context for its duration, so
    repository logs and error contexts share it. The service holds no
    domain rules of its own; validation interceptors raise to abort.
    """

    def __init__(
        self,
        repository: RepositoryPort[EntityT],
        config: ServiceConfig | None = None,
        *,
        interceptors: Iterable[ServiceInterceptor] = (),
        entity_type: str | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or ServiceConfig()
        self.interceptors = InterceptorChain(interceptors)
        self.entity_type = entity_type or getattr(repository, "entity_type", None)

    def _context(self, operation: str, **arguments: Any) -> OperationContext:
        return OperationContext(
            operation=operation,
            trace_id=generate_trace_id(),
            layer="service",
            entity_type=self.entity_type,
            arguments=arguments,
        )

    def _should_validate(self, options: CreateOptions | None) -> bool:
        return self.config.validation and not (options is not None and options.skip_validation)

    async def _run(
        self,
        ctx: OperationContext,
        work: Callable[[], Awaitable[R]],
        *,
        validate: bool = False,
    ) -> R:
        with trace_context(ctx.trace_id):
            try:
                await self.interceptors.before(ctx)
                if validate:
                    await self.interceptors.validate(ctx)
                result = await work()
                await self.interceptors.after(ctx, result)
                return result
            except Exception as exc:
                ctx.annotate(exc)
                await self.interceptors.on_error(ctx, exc)
                raise

    async def _after_find_all(self, ctx: OperationContext, entities: Iterable[EntityT]) -> None:
        for entity in entities:
            await self.interceptors.after_find(ctx, entity)

    async def create(
        self, data: Mapping[str, Any], options: CreateOptions | None = None
    ) -> EntityT:
        ctx = self._context("create", data=dict(data), options=options)
        return await self._run(
            ctx,
            lambda: self.repository.create(data, options),
            validate=self._should_validate(options),
        )

    async def find_by_id(self, id: EntityId, options: FindOptions | None = None) -> EntityT | None:
        ctx = self._context("find_by_id", id=id, options=options)

        async def work() -> EntityT | None:
            entity = await self.repository.find_by_id(id, options)
            if entity is not None:
                await self.interceptors.after_find(ctx, entity)
            return entity

        return await self._run(ctx, work)

    async def update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None = None
    ) -> EntityT:
        ctx = self._context("update", id=id, data=dict(data), options=options)
        return await self._run(
            ctx,
            lambda: self.repository.update(id, data, options),
            validate=self._should_validate(options),
        )

    async def delete(self, id: EntityId, options: DeleteOptions | None = None) -> None:
        ctx = self._context("delete", id=id, options=options)
        await self._run(ctx, lambda: self.repository.delete(id, options))

    async def list(self, options: ListOptions | None = None) -> PaginatedResult[EntityT]:
        ctx = self._context("list", options=options)

        async def work() -> PaginatedResult[EntityT]:
            result = await self.repository.list(options)
            await self._after_find_all(ctx, result.data)
            return result

        return await self._run(ctx, work)

    async def search(self, query: SearchQuery) -> SearchResult[EntityT]:
        ctx = self._context("search", query=query)

        async def work() -> SearchResult[EntityT]:
            result = await self.repository.search(query)
            await self._after_find_all(ctx, result.data)
            return result

        return await self._run(ctx, work)
