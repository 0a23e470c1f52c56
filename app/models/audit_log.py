from tortoise import fields, models
import uuid


class AuditLog(models.Model):
    """Append-only record of who did what to which entity."""
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    actor = fields.CharField(max_length=128) # user id, or 'system' for dispatcher side effects
    action = fields.CharField(max_length=128) # e.g., 'welcome_email_sent'
    target_id = fields.CharField(max_length=128, null=True)
    metadata = fields.TextField(null=True) # JSON text
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "audit_logs"
        indexes = [
            ("actor", "created_at"),
            ("action", "created_at"),
            ("target_id",),
        ]
