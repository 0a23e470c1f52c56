from enum import Enum
from tortoise import fields, models
import uuid


class DigestBatchStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class DigestBatch(models.Model):
    """
    Idempotency record for the weekly digest trigger. At most one row exists
    per non-null idempotency key.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    idempotency_key = fields.CharField(max_length=128, null=True, unique=True)
    user_count = fields.IntField()
    status = fields.CharEnumField(DigestBatchStatus, max_length=16)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "digest_batches"
        indexes = [
            ("created_at",),
        ]
