# app/models/__init__.py
from .audit_log import AuditLog
from .digest_batch import DigestBatch, DigestBatchStatus
from .outbox import OutboxEvent
from .user import User, UserRole

# Export all models
__all__ = [
    "AuditLog",
    "DigestBatch",
    "DigestBatchStatus",
    "OutboxEvent",
    "User",
    "UserRole",
]
