from .base import Repository, RepositoryConfig
from .interfaces import EntityStore
from .options import (
    CreateOptions,
    DeleteOptions,
    FindOptions,
    ListOptions,
    SearchQuery,
    UpdateOptions,
)

__all__ = [
    "CreateOptions",
    "DeleteOptions",
    "EntityStore",
    "FindOptions",
    "ListOptions",
    "Repository",
    "RepositoryConfig",
    "SearchQuery",
    "UpdateOptions",
]
