from .builder import Query, QueryBuilder, SortCriteria, create_query_builder
from .filters import (
    ConditionLeaf,
    FilterBuilder,
    FilterCondition,
    FilterCriteria,
    FilterGroup,
    FilterNode,
    FilterOperator,
    and_filters,
    create_filter,
    ensure_criteria,
    or_filters,
)

__all__ = [
    "ConditionLeaf",
    "FilterBuilder",
    "FilterCondition",
    "FilterCriteria",
    "FilterGroup",
    "FilterNode",
    "FilterOperator",
    "Query",
    "QueryBuilder",
    "SortCriteria",
    "and_filters",
    "create_filter",
    "create_query_builder",
    "ensure_criteria",
    "or_filters",
]
