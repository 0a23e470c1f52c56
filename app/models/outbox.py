from tortoise import fields, models
import uuid


class OutboxEvent(models.Model):
    """
    The Outbox table stores events atomically with the database transaction.
    This is the core of the Transactional Outbox Pattern.

    Rows are only mutated by the dispatcher and never again once processed=True.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    aggregate_id = fields.CharField(max_length=128) # ID of the entity that generated the event
    event_type = fields.CharField(max_length=128) # e.g., 'user.created'
    payload = fields.TextField() # JSON text, decoded by the handler registry
    processed = fields.BooleanField(default=False)
    processed_at = fields.DatetimeField(null=True) # Set only when processed flips to True
    attempts = fields.IntField(default=0)
    last_error = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "outbox_events"
        indexes = [
            ("processed", "created_at"),   # Dispatcher fetch: pending events, oldest first
            ("event_type", "processed"),   # Per-type inspection
        ]

    def __str__(self):
        return f"{self.event_type}:{self.id}"
