"""SQLAlchemy implementation of the storage boundary."""

from .filters import condition_to_clause, filters_to_clause, sort_to_order_by
from .store import SqlAlchemyEntityStore
from .tables import entity_columns, entity_table

__all__ = [
    "SqlAlchemyEntityStore",
    "condition_to_clause",
    "entity_columns",
    "entity_table",
    "filters_to_clause",
    "sort_to_order_by",
]
