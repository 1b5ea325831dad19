"""Opaque identifier types.

Each kind is a distinct ``NewType`` so a type checker flags an ``EntityId``
passed where a ``UserId`` is expected. At runtime they are plain strings.
"""

from __future__ import annotations

import uuid
from typing import NewType

__all__ = [
    "EntityId",
    "TenantId",
    "TraceId",
    "UserId",
    "generate_entity_id",
    "generate_tenant_id",
    "generate_trace_id",
    "generate_user_id",
]

EntityId = NewType("EntityId", str)
UserId = NewType("UserId", str)
TenantId = NewType("TenantId", str)
TraceId = NewType("TraceId", str)


def generate_entity_id() -> EntityId:
    return EntityId(str(uuid.uuid4()))


def generate_user_id() -> UserId:
    return UserId(str(uuid.uuid4()))


def generate_tenant_id() -> TenantId:
    return TenantId(str(uuid.uuid4()))


def generate_trace_id() -> TraceId:
    return TraceId(str(uuid.uuid4()))
