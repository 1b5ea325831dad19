"""Storage boundary consumed by ``Repository``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, TypeVar

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

EntityT = TypeVar("EntityT", bound=Entity)


class EntityStore(Protocol[EntityT]):
    """The seven primitives a storage adapter must implement.

    Adapters translate ``FilterCriteria`` into native predicates with the
    operator semantics of ``datacore.query.filters``. When
    ``UpdateOptions.optimistic_locking`` is set together with
    ``expected_version``, ``execute_update`` must write conditionally and
    raise ``ConcurrencyError`` on a version mismatch. Each successful update
    or delete stores ``version + 1``.
    """

    async def execute_create(
        self, data: Mapping[str, Any], options: CreateOptions | None = None
    ) -> EntityT: ...

    async def execute_find_by_id(
        self, id: EntityId, options: FindOptions | None = None
    ) -> EntityT | None: ...

    async def execute_find_many(
        self, criteria: FilterCriteria, options: FindOptions | None = None
    ) -> list[EntityT]: ...

    async def execute_update(
        self, id: EntityId, data: Mapping[str, Any], options: UpdateOptions | None = None
    ) -> EntityT: ...

    async def execute_delete(self, id: EntityId, options: DeleteOptions | None = None) -> None: ...

    async def execute_count(self, criteria: FilterCriteria) -> int: ...

    async def execute_search(self, query: SearchQuery) -> SearchResult[EntityT]: ...
