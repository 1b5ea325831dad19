# tests/conftest.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import Column, Integer, MetaData, String

from datacore.core.exceptions import DomainValidationError, NotFoundError
from datacore.dto.pagination import SearchResult
from datacore.infra.database import DatabaseContext
from datacore.models.entity import Entity
from datacore.query.filters import FilterCriteria
from datacore.repositories.options import (
    CreateOptions,
    DeleteOptions,
    FindOptions,
    SearchQuery,
    UpdateOptions,
)
from datacore.repositories.sqlalchemy import entity_table
from datacore.utils.datetime import utcnow


@dataclass(kw_only=True, eq=False)
class User(Entity):
    email: str = ""
    name: str = ""
    age: int | None = None
    status: str = "active"

    def validate(self) -> None:
        super().validate()
        if "@" not in self.email:
            raise DomainValidationError(
                "User failed validation",
                "User",
                [{"field": "email", "message": "invalid email", "code": "invalid_string"}],
            )


metadata = MetaData()
users_table = entity_table(
    "users",
    metadata,
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False, default=""),
    Column("age", Integer, nullable=True),
    Column("status", String(32), nullable=False, default="active"),
)


class RecordingStore:
    """In-memory EntityStore that records every primitive call.

    It does not evaluate filter trees: ``execute_find_many`` returns every
    stored entity (sliced by limit/offset) and ``execute_count`` the total,
    so tests can assert on the criteria the repository sent.
    """

    def __init__(self) -> None:
        self.rows: dict[str, User] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: BaseException | None = None

    def _record(self, name: str, payload: Any) -> None:
        self.calls.append((name, payload))
        if self.fail_with is not None:
            raise self.fail_with

    def last(self, name: str) -> Any:
        for call_name, payload in reversed(self.calls):
            if call_name == name:
                return payload
        raise AssertionError(f"{name} was never called")

    async def execute_create(self, data: Mapping[str, Any], options: CreateOptions | None = None):
        self._record("create", (dict(data), options))
        user = User(**data)
        self.rows[user.id] = user
        return user

    async def execute_find_by_id(self, id, options: FindOptions | None = None):
        self._record("find_by_id", (id, options))
        return self.rows.get(id)

    async def execute_find_many(self, criteria: FilterCriteria, options: FindOptions | None = None):
        self._record("find_many", (criteria, options))
        items = list(self.rows.values())
        offset = (options.offset if options else None) or 0
        limit = options.limit if options and options.limit is not None else len(items)
        return items[offset : offset + limit]

    async def execute_update(self, id, data: Mapping[str, Any], options: UpdateOptions | None = None):
        self._record("update", (id, dict(data), options))
        current = self.rows.get(id)
        if current is None:
            raise NotFoundError("User", id)
        updated = replace(current, **data, version=current.version + 1)
        self.rows[id] = updated
        return updated

    async def execute_delete(self, id, options: DeleteOptions | None = None) -> None:
        self._record("delete", (id, options))
        if id not in self.rows:
            raise NotFoundError("User", id)
        if options is not None and options.soft:
            self.rows[id].deleted_at = utcnow()
            self.rows[id].version += 1
        else:
            del self.rows[id]

    async def execute_count(self, criteria: FilterCriteria) -> int:
        self._record("count", criteria)
        return len(self.rows)

    async def execute_search(self, query: SearchQuery):
        self._record("search", query)
        term = (query.query or "").lower()
        hits = [u for u in self.rows.values() if term in u.name.lower()]
        return SearchResult(data=hits, total=len(hits))


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest_asyncio.fixture
async def db():
    database = DatabaseContext("sqlite+aiosqlite:///:memory:")
    async with database.engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    try:
        yield database
    finally:
        await database.dispose()
