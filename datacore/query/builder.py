"""Immutable query descriptions assembled fluently."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any, Literal

from datacore.query.filters import FilterCriteria

__all__ = ["Query", "QueryBuilder", "SortCriteria", "create_query_builder"]


@dataclass(frozen=True)
class SortCriteria:
    field: str
    direction: Literal["ASC", "DESC"] = "ASC"
    nulls: Literal["FIRST", "LAST"] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"field": self.field, "direction": self.direction}
        if self.nulls:
            data["nulls"] = self.nulls
        return data


@dataclass(frozen=True)
class Query:
    criteria: FilterCriteria | None = None
    sort: tuple[SortCriteria, ...] = ()
    limit: int | None = None
    offset: int | None = None
    fields: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.criteria is not None:
            data["criteria"] = self.criteria.to_dict()
        if self.sort:
            data["sort"] = [s.to_dict() for s in self.sort]
        pagination = {
            key: value
            for key, value in (("limit", self.limit), ("offset", self.offset))
            if value is not None
        }
        if pagination:
            data["pagination"] = pagination
        if self.fields:
            data["fields"] = list(self.fields)
        if self.includes:
            data["includes"] = list(self.includes)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class QueryBuilder:
    def __init__(self) -> None:
        self._query = Query()

    def where(self, criteria: FilterCriteria) -> QueryBuilder:
        self._query = replace(self._query, criteria=criteria)
        return self

    def order_by(self, sort: Iterable[SortCriteria]) -> QueryBuilder:
        self._query = replace(self._query, sort=tuple(sort))
        return self

    def limit(self, limit: int) -> QueryBuilder:
        self._query = replace(self._query, limit=limit)
        return self

    def offset(self, offset: int) -> QueryBuilder:
        self._query = replace(self._query, offset=offset)
        return self

    def select(self, fields: Iterable[str]) -> QueryBuilder:
        self._query = replace(self._query, fields=tuple(fields))
        return self

    def include(self, relations: Iterable[str]) -> QueryBuilder:
        self._query = replace(self._query, includes=tuple(relations))
        return self

    def build(self) -> Query:
        return self._query


def create_query_builder() -> QueryBuilder:
    return QueryBuilder()
