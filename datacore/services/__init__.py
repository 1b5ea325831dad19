from .base import RepositoryPort, Service, ServiceConfig

__all__ = ["RepositoryPort", "Service", "ServiceConfig"]
