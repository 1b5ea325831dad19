"""Unit of Work binding entity stores to one transaction."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Protocol, TypeVar

from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from datacore.models.entity import Entity
from datacore.repositories.sqlalchemy import SqlAlchemyEntityStore

EntityT = TypeVar("EntityT", bound=Entity)


class UnitOfWork(Protocol, AbstractAsyncContextManager["UnitOfWork"]):
    """Transaction boundary handed to code that builds repositories."""

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlAlchemyUnitOfWork(UnitOfWork):
    """Commits on clean exit, rolls back when the block raises."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session is None:
            return
        try:
            if exc_type:
                await self._session.rollback()
            else:
                await self._session.commit()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        if self._session is not None:
            await self._session.commit()

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("UnitOfWork session is not initialized. Use within context manager.")
        return self._session

    def store(
        self,
        table: Table,
        entity_cls: type[EntityT],
        *,
        soft_delete_field: str = "deleted_at",
        search_fields: Sequence[str] | None = None,
    ) -> SqlAlchemyEntityStore[EntityT]:
        return SqlAlchemyEntityStore(
            self.session,
            table,
            entity_cls,
            soft_delete_field=soft_delete_field,
            search_fields=search_fields,
        )
