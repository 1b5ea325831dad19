"""Envelope columns shared by every entity table."""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Index, Integer, MetaData, String, Table
from sqlalchemy.schema import SchemaItem


def entity_columns() -> list[Column]:
    return [
        Column("id", String(64), primary_key=True),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        Column("created_by", String(64), nullable=True),
        Column("updated_by", String(64), nullable=True),
        Column("version", Integer, nullable=False, default=1),
        Column("deleted_at", DateTime(timezone=True), nullable=True),
        Column("metadata", JSON, nullable=True),
    ]


def entity_table(name: str, metadata: MetaData, *items: SchemaItem) -> Table:
    """Build a table holding the entity envelope plus ``items``.

    >>> users = entity_table("users", meta, Column("email", String, nullable=False))
    """
    table = Table(name, metadata, *entity_columns(), *items)
    Index(f"ix_{name}_deleted_at", table.c.deleted_at)
    return table
