"""``EntityStore`` over a SQLAlchemy Core table and an ``AsyncSession``."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import (
    String,
    Table,
    Text,
    and_,
    delete,
    func,
    insert,
    or_,
    select,
    true,
    update,
)
from sqlalchemy.engine import Result
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.base import Executable
from sqlalchemy.sql.elements import ColumnElement

from datacore.core.exceptions import (
    ConcurrencyError,
    ConflictError,
    DatabaseError,
    NotFoundError,
)
from datacore.core.ids import EntityId
from datacore.dto.pagination import SearchResult
from datacore.models.entity import Entity
from datacore.query.filters import FilterCriteria
from datacore.repositories.options import (
    CreateOptions,
    DeleteOptions,
    FindOptions,
    SearchQuery,
    UpdateOptions,
)
from datacore.repositories.sqlalchemy.filters import filters_to_clause, sort_to_order_by
from datacore.utils.datetime import as_utc_aware, utcnow

logger = structlog.get_logger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)

_IMMUTABLE_ON_UPDATE = frozenset({"id", "version", "created_at", "created_by"})


class SqlAlchemyEntityStore(Generic[EntityT]):
    """Maps rows of ``table`` to instances of ``entity_cls``.

    Column names must match the entity's dataclass field names; columns the
    entity does not declare are ignored when loading. An ``AsyncSession``
    cannot run two statements at once, so every primitive holds a lock for
    its whole duration. Transactions belong to the caller (see
    ``datacore.infra.unit_of_work``); the store only flushes.
    """

    def __init__(
        self,
        session: AsyncSession,
        table: Table,
        entity_cls: type[EntityT],
        *,
        soft_delete_field: str = "deleted_at",
        search_fields: Sequence[str] | None = None,
    ) -> None:
        self._session = session
        self._table = table
        self._entity_cls = entity_cls
        self._soft_delete_field = soft_delete_field
        self._fields = frozenset(f.name for f in dataclasses.fields(entity_cls))
        if search_fields is None:
            search_fields = [
                column.name
                for column in table.columns
                if isinstance(column.type, (String, Text)) and column.name != "id"
            ]
        self._search_fields = tuple(search_fields)
        self._lock = asyncio.Lock()

    @property
    def table(self) -> Table:
        return self._table

    @property
    def entity_type(self) -> str:
        return self._entity_cls.__name__

    # -- helpers -------------------------------------------------------------

    def _to_entity(self, row: Any) -> EntityT:
        values: dict[str, Any] = {}
        for key, value in row._mapping.items():
            if key not in self._fields:
                continue
            if isinstance(value, datetime):
                value = as_utc_aware(value)
            values[key] = value
        if values.get("metadata") is None:
            values["metadata"] = {}
        return self._entity_cls(**values)

    def _columns_only(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in data.items() if key in self._table.c}

    def _soft_delete_column(self) -> ColumnElement | None:
        return self._table.c.get(self._soft_delete_field)

    def _active_clause(self) -> ColumnElement[bool]:
        column = self._soft_delete_column()
        return column.is_(None) if column is not None else true()

    async def _execute(self, stmt: Executable, operation: str) -> Result[Any]:
        try:
            return await self._session.execute(stmt)
        except IntegrityError as exc:
            logger.warning(
                "store_integrity_error",
                table=self._table.name,
                operation=operation,
                error=str(exc.orig),
            )
            raise ConflictError(
                f"{self.entity_type} violates a uniqueness or integrity constraint",
                conflict_type="INTEGRITY",
            ) from exc
        except SQLAlchemyError as exc:
            raise DatabaseError(
                f"{operation} on {self._table.name} failed",
                operation=operation,
                query=str(getattr(exc, "statement", None) or stmt),
            ) from exc

    async def _fetch(self, id: EntityId, *, with_deleted: bool = True) -> EntityT | None:
        stmt = select(self._table).where(self._table.c.id == id)
        if not with_deleted:
            stmt = stmt.where(self._active_clause())
        row = (await self._execute(stmt, "find_by_id")).first()
        return self._to_entity(row) if row is not None else None

    def _default_order(self) -> list[ColumnElement]:
        order: list[ColumnElement] = []
        if "created_at" in self._table.c:
            order.append(self._table.c.created_at.asc())
        order.append(self._table.c.id.asc())
        return order

    # -- primitives ----------------------------------------------------------

    async def execute_create(
        self, data: Mapping[str, Any], options: CreateOptions | None = None
    ) -> EntityT:
        values = self._columns_only(data)
        async with self._lock:
            await self._execute(insert(self._table).values(**values), "create")
            entity = await self._fetch(values["id"])
        if entity is None:  # pragma: no cover
            raise DatabaseError(
                f"{self.entity_type} '{values['id']}' vanished after insert", operation="create"
            )
        return entity

    async def execute_find_by_id(
        self, id: EntityId, options: FindOptions | None = None
    ) -> EntityT | None:
        with_deleted = options.with_deleted if options is not None else False
        stmt = select(self._table).where(self._table.c.id == id)
        if not with_deleted:
            stmt = stmt.where(self._active_clause())
        if options is not None and options.for_update:
            stmt = stmt.with_for_update()
        async with self._lock:
            row = (await self._execute(stmt, "find_by_id")).first()
        return self._to_entity(row) if row is not None else None

    async def execute_find_many(
        self, criteria: FilterCriteria, options: FindOptions | None = None
    ) -> list[EntityT]:
        stmt = select(self._table).where(filters_to_clause(self._table, criteria))
        if options is not None and options.sort:
            stmt = stmt.order_by(*sort_to_order_by(self._table, options.sort))
        else:
            stmt = stmt.order_by(*self._default_order())
        if options is not None and options.limit is not None:
            stmt = stmt.limit(options.limit)
        if options is not None and options.offset:
            stmt = stmt.offset(options.offset)
        if options is not None and options.for_update:
            stmt = stmt.with_for_update()
        async with self._lock:
            rows = (await self._execute(stmt, "find_many")).all()
        return [self._to_entity(row) for row in rows]

    async def execute_update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None = None
    ) -> EntityT:
        options = options or UpdateOptions()
        table = self._table
        values = {
            key: value
            for key, value in self._columns_only(data).items()
            if key not in _IMMUTABLE_ON_UPDATE
        }
        stmt = update(table).where(table.c.id == id)
        checks_version = options.optimistic_locking and options.expected_version is not None
        if checks_version:
            stmt = stmt.where(table.c.version == options.expected_version)
        stmt = stmt.values(**values, version=table.c.version + 1)

        async with self._lock:
            result = await self._execute(stmt, "update")
            if result.rowcount == 0:
                current = await self._fetch(id)
                if current is None:
                    raise NotFoundError(self.entity_type, id)
                logger.info(
                    "store_version_conflict",
                    table=table.name,
                    entity_id=id,
                    expected_version=options.expected_version,
                    actual_version=current.version,
                )
                raise ConcurrencyError(
                    f"{self.entity_type} '{id}' was modified concurrently",
                    expected_version=options.expected_version,
                    actual_version=current.version,
                )
            entity = await self._fetch(id)
        if entity is None:  # pragma: no cover
            raise NotFoundError(self.entity_type, id)
        return entity

    async def execute_delete(self, id: EntityId, options: DeleteOptions | None = None) -> None:
        options = options or DeleteOptions()
        table = self._table
        column = self._soft_delete_column()
        if options.soft and column is not None:
            values: dict[str, Any] = {column.name: utcnow(), "version": table.c.version + 1}
            if "updated_at" in table.c:
                values["updated_at"] = values[column.name]
            if options.actor and "updated_by" in table.c:
                values["updated_by"] = options.actor
            stmt = update(table).where(and_(table.c.id == id, column.is_(None))).values(**values)
        else:
            stmt = delete(table).where(table.c.id == id)

        async with self._lock:
            result = await self._execute(stmt, "delete")
        if result.rowcount == 0:
            raise NotFoundError(self.entity_type, id)

    async def execute_count(self, criteria: FilterCriteria) -> int:
        stmt = (
            select(func.count())
            .select_from(self._table)
            .where(filters_to_clause(self._table, criteria))
        )
        async with self._lock:
            return int((await self._execute(stmt, "count")).scalar_one())

    def _search_clause(self, query: SearchQuery) -> ColumnElement[bool]:
        term = (query.query or "").strip()
        fields = query.fields or self._search_fields
        if not term or not fields:
            return true()
        columns = [self._table.c[name] for name in fields if name in self._table.c]
        if not columns:
            return true()
        # Fuzzy: every whitespace-separated token must match some field.
        tokens = term.split() if query.fuzzy else [term]
        return and_(
            *(
                or_(*(column.icontains(token, autoescape=True) for column in columns))
                for token in tokens
            )
        )

    async def execute_search(self, query: SearchQuery) -> SearchResult[EntityT]:
        clause = and_(self._search_clause(query), self._active_clause())
        stmt = select(self._table).where(clause).order_by(*self._default_order())
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        if query.offset:
            stmt = stmt.offset(query.offset)
        count_stmt = select(func.count()).select_from(self._table).where(clause)
        async with self._lock:
            rows = (await self._execute(stmt, "search")).all()
            total = int((await self._execute(count_stmt, "search")).scalar_one())
        return SearchResult(data=[self._to_entity(row) for row in rows], total=total)
