from .entity import AuditOperation, AuditTrail, Entity, ValidatableEntity

__all__ = ["AuditOperation", "AuditTrail", "Entity", "ValidatableEntity"]
