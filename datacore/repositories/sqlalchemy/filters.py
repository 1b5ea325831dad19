"""Translate ``FilterCriteria`` trees into SQLAlchemy Core clauses."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import Table, and_, or_, true
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from datacore.core.exceptions import ValidationError
from datacore.query.builder import SortCriteria
from datacore.query.filters import (
    ConditionLeaf,
    FilterCondition,
    FilterCriteria,
    FilterGroup,
    FilterNode,
)

__all__ = ["condition_to_clause", "filters_to_clause", "sort_to_order_by"]


def _column(table: Table, name: str) -> ColumnElement:
    try:
        return table.c[name]
    except KeyError:
        raise ValidationError(
            f"Unknown field '{name}' for {table.name}",
            [{"field": name, "message": "unknown field", "code": "unknown_field"}],
        ) from None


def condition_to_clause(table: Table, condition: FilterCondition) -> ColumnElement[bool]:
    column = _column(table, condition.field)
    op = condition.operator
    value = condition.value
    values = condition.values or ()

    if op == "eq":
        return column == value
    if op == "ne":
        return column != value
    if op == "gt":
        return column > value
    if op == "gte":
        return column >= value
    if op == "lt":
        return column < value
    if op == "lte":
        return column <= value
    if op == "like":
        return column.like(value)
    if op == "ilike":
        return column.ilike(value)
    if op == "startsWith":
        return column.startswith(value, autoescape=True)
    if op == "endsWith":
        return column.endswith(value, autoescape=True)
    if op == "contains":
        return column.contains(value, autoescape=True)
    if op == "in":
        return column.in_(values)
    if op == "notIn":
        return column.not_in(values)
    if op == "isNull":
        return column.is_(None)
    if op == "isNotNull":
        return column.is_not(None)
    if op == "between":
        low, high = values
        return column.between(low, high)
    raise ValidationError(f"Unsupported filter operator '{op}'")  # pragma: no cover


def _node_to_clause(table: Table, node: FilterNode) -> ColumnElement[bool]:
    if isinstance(node, ConditionLeaf):
        parts = [condition_to_clause(table, c) for c in node.conditions]
    elif isinstance(node, FilterGroup):
        parts = [_node_to_clause(table, child) for child in node.children]
    else:  # pragma: no cover
        raise TypeError(f"unexpected filter node {node!r}")
    if not parts:
        return true()
    if len(parts) == 1:
        return parts[0]
    return and_(*parts) if node.logic == "AND" else or_(*parts)


def filters_to_clause(table: Table, criteria: FilterCriteria) -> ColumnElement[bool]:
    """Empty criteria translate to ``TRUE`` (match everything)."""
    return _node_to_clause(table, criteria.as_tree())


def sort_to_order_by(table: Table, sort: Iterable[SortCriteria]) -> list[UnaryExpression]:
    order: list[UnaryExpression] = []
    for item in sort:
        column = _column(table, item.field)
        expr = column.desc() if item.direction == "DESC" else column.asc()
        if item.nulls == "FIRST":
            expr = expr.nulls_first()
        elif item.nulls == "LAST":
            expr = expr.nulls_last()
        order.append(expr)
    return order
