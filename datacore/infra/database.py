# datacore/infra/database.py
from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from datacore.core.config import settings
from datacore.infra.unit_of_work import SqlAlchemyUnitOfWork

logger = structlog.get_logger(__name__)


def _apply_asyncpg_scheme(database_url: str) -> str:
    if database_url.startswith("postgresql+psycopg://"):
        return database_url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql+psycopg2://"):
        return database_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def _create_engine(database_url: str, **engine_kwargs: Any) -> AsyncEngine:
    url = make_url(database_url)
    connect_args: dict[str, Any] = {}
    options: dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() == "postgresql" and url.get_driver_name() == "asyncpg":
        query = dict(url.query)
        if "sslmode" in query:
            connect_args["ssl"] = query.pop("sslmode")
        # asyncpg rejects channel_binding
        query.pop("channel_binding", None)
        url = url._replace(query=query)

    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every session sees an empty database
        connect_args["check_same_thread"] = False
        options = {"poolclass": StaticPool}

    options.update(engine_kwargs)
    return create_async_engine(url, connect_args=connect_args, **options)


class DatabaseContext:
    """Engine plus session factory, owned explicitly by the caller.

    Create one per process (or per test), hand it to whatever builds units of
    work, and ``await dispose()`` on shutdown. It also works as an async
    context manager.
    """

    def __init__(self, database_url: str | None = None, **engine_kwargs: Any) -> None:
        self.database_url = _apply_asyncpg_scheme(database_url or settings.database_url)
        self.engine: AsyncEngine = _create_engine(self.database_url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.debug("database_configured", backend=self.engine.url.get_backend_name())

    def unit_of_work(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def __aenter__(self) -> DatabaseContext:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()
