"""Storage-independent predicate trees.

A ``FilterCriteria`` node combines its conditions and nested groups with a
single ``logic`` operator. Nothing here evaluates a tree; storage adapters
translate it into native predicates (see ``repositories.sqlalchemy.filters``).

JSON shape::

    {"conditions": [{"field": ..., "operator": ..., "value" | "values": ...}],
     "logic": "AND" | "OR",
     "groups": [<criteria>, ...]}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, get_args

from datacore.core.exceptions import ValidationError

__all__ = [
    "ConditionLeaf",
    "FilterBuilder",
    "FilterCondition",
    "FilterCriteria",
    "FilterGroup",
    "FilterNode",
    "FilterOperator",
    "Logic",
    "and_filters",
    "create_filter",
    "ensure_criteria",
    "or_filters",
]

FilterOperator = Literal[
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "like",
    "ilike",
    "startsWith",
    "endsWith",
    "contains",
    "in",
    "notIn",
    "isNull",
    "isNotNull",
    "between",
]
Logic = Literal["AND", "OR"]

OPERATORS: frozenset[str] = frozenset(get_args(FilterOperator))
LIST_OPERATORS: frozenset[str] = frozenset({"in", "notIn", "between"})
NULLARY_OPERATORS: frozenset[str] = frozenset({"isNull", "isNotNull"})


def _invalid(message: str, field_name: str, value: Any = None) -> ValidationError:
    return ValidationError(
        message,
        [{"field": field_name, "message": message, "code": "invalid_filter", "value": value}],
    )


def _is_list_like(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


@dataclass(frozen=True)
class FilterCondition:
    """Single ``field <operator> value`` predicate.

    ``in``/``notIn``/``between`` take ``values`` (``between`` exactly two),
    ``isNull``/``isNotNull`` take nothing, every other operator takes one
    scalar ``value``.
    """

    field: str
    operator: FilterOperator
    value: Any = None
    values: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.field, str) or not self.field:
            raise _invalid("filter field must be a non-empty string", "field", self.field)
        if self.operator not in OPERATORS:
            raise _invalid(f"unknown filter operator '{self.operator}'", "operator", self.operator)

        if self.operator in NULLARY_OPERATORS:
            if self.value is not None or self.values is not None:
                raise _invalid(f"'{self.operator}' takes no value", self.field)
            return

        if self.operator in LIST_OPERATORS:
            if self.value is not None:
                raise _invalid(f"'{self.operator}' takes 'values', not 'value'", self.field)
            if self.values is None or not _is_list_like(self.values):
                raise _invalid(f"'{self.operator}' requires a list of values", self.field)
            values = tuple(self.values)
            if self.operator == "between" and len(values) != 2:
                raise _invalid("'between' requires exactly two values", self.field, list(values))
            object.__setattr__(self, "values", values)
            return

        if self.values is not None:
            raise _invalid(f"'{self.operator}' takes 'value', not 'values'", self.field)
        if self.value is None or _is_list_like(self.value) or isinstance(self.value, Mapping):
            raise _invalid(f"'{self.operator}' requires a single scalar value", self.field)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"field": self.field, "operator": self.operator}
        if self.operator in LIST_OPERATORS:
            data["values"] = list(self.values or ())
        elif self.operator not in NULLARY_OPERATORS:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FilterCondition:
        return cls(
            field=data.get("field", ""),
            operator=data.get("operator", ""),  # type: ignore[arg-type]
            value=data.get("value"),
            values=data.get("values"),
        )


@dataclass(frozen=True)
class ConditionLeaf:
    conditions: tuple[FilterCondition, ...]
    logic: Logic = "AND"


@dataclass(frozen=True)
class FilterGroup:
    children: tuple[FilterNode, ...]
    logic: Logic = "AND"


FilterNode: TypeAlias = "ConditionLeaf | FilterGroup"


@dataclass(frozen=True)
class FilterCriteria:
    conditions: tuple[FilterCondition, ...] = ()
    logic: Logic = "AND"
    groups: tuple[FilterCriteria, ...] = ()

    def __post_init__(self) -> None:
        if self.logic not in ("AND", "OR"):
            raise _invalid(f"unknown filter logic '{self.logic}'", "logic", self.logic)
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "groups", tuple(self.groups))

    def is_empty(self) -> bool:
        """True when the tree holds no condition at any depth (matches everything)."""
        return not self.conditions and all(group.is_empty() for group in self.groups)

    def with_conditions(self, *conditions: FilterCondition) -> FilterCriteria:
        """Return a tree whose top-level AND also requires ``conditions``.

        An OR-rooted tree is kept intact as a nested group so the added
        conditions constrain every branch.
        """
        if not conditions:
            return self
        if self.logic == "AND" or self.is_empty():
            return FilterCriteria(
                conditions=(*self.conditions, *conditions),
                logic="AND",
                groups=self.groups,
            )
        return FilterCriteria(conditions=conditions, logic="AND", groups=(self,))

    def as_tree(self) -> FilterNode:
        if not self.groups:
            return ConditionLeaf(self.conditions, self.logic)
        children: list[FilterNode] = []
        if self.conditions:
            children.append(ConditionLeaf(self.conditions, self.logic))
        children.extend(group.as_tree() for group in self.groups)
        return FilterGroup(tuple(children), self.logic)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.conditions:
            data["conditions"] = [condition.to_dict() for condition in self.conditions]
        data["logic"] = self.logic
        if self.groups:
            data["groups"] = [group.to_dict() for group in self.groups]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> FilterCriteria:
        if not data:
            return cls()
        return cls(
            conditions=tuple(FilterCondition.from_dict(c) for c in data.get("conditions") or ()),
            logic=data.get("logic") or "AND",
            groups=tuple(cls.from_dict(g) for g in data.get("groups") or ()),
        )


class FilterBuilder:
    """Fluent accumulator; every condition is combined with AND."""

    def __init__(self) -> None:
        self._conditions: list[FilterCondition] = []

    def _add(self, field_name: str, operator: FilterOperator, **kwargs: Any) -> FilterBuilder:
        self._conditions.append(FilterCondition(field_name, operator, **kwargs))
        return self

    def eq(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "eq", value=value)

    def ne(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "ne", value=value)

    def gt(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "gt", value=value)

    def gte(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "gte", value=value)

    def lt(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "lt", value=value)

    def lte(self, field_name: str, value: Any) -> FilterBuilder:
        return self._add(field_name, "lte", value=value)

    def like(self, field_name: str, value: str) -> FilterBuilder:
        return self._add(field_name, "like", value=value)

    def ilike(self, field_name: str, value: str) -> FilterBuilder:
        return self._add(field_name, "ilike", value=value)

    def starts_with(self, field_name: str, value: str) -> FilterBuilder:
        return self._add(field_name, "startsWith", value=value)

    def ends_with(self, field_name: str, value: str) -> FilterBuilder:
        return self._add(field_name, "endsWith", value=value)

    def contains(self, field_name: str, value: str) -> FilterBuilder:
        return self._add(field_name, "contains", value=value)

    def in_(self, field_name: str, values: Iterable[Any]) -> FilterBuilder:
        return self._add(field_name, "in", values=tuple(values))

    def not_in(self, field_name: str, values: Iterable[Any]) -> FilterBuilder:
        return self._add(field_name, "notIn", values=tuple(values))

    def between(self, field_name: str, low: Any, high: Any) -> FilterBuilder:
        return self._add(field_name, "between", values=(low, high))

    def is_null(self, field_name: str) -> FilterBuilder:
        return self._add(field_name, "isNull")

    def is_not_null(self, field_name: str) -> FilterBuilder:
        return self._add(field_name, "isNotNull")

    def build(self) -> FilterCriteria:
        return FilterCriteria(conditions=tuple(self._conditions), logic="AND")


def create_filter() -> FilterBuilder:
    return FilterBuilder()


def and_filters(*filters: FilterCriteria) -> FilterCriteria:
    return FilterCriteria(groups=filters, logic="AND")


def or_filters(*filters: FilterCriteria) -> FilterCriteria:
    return FilterCriteria(groups=filters, logic="OR")


def ensure_criteria(criteria: FilterCriteria | Mapping[str, Any] | None) -> FilterCriteria:
    """Accept a criteria object, its JSON form, or ``None`` (match everything)."""
    if criteria is None:
        return FilterCriteria()
    if isinstance(criteria, FilterCriteria):
        return criteria
    return FilterCriteria.from_dict(criteria)
