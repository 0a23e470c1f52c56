from enum import Enum
from tortoise import fields, models
import uuid


class UserRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class User(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    email = fields.CharField(max_length=255, unique=True)
    name = fields.CharField(max_length=255)
    role = fields.CharEnumField(UserRole, default=UserRole.MEMBER, max_length=16)
    org_id = fields.CharField(max_length=128, null=True)
    # Audit fields
    created_by = fields.CharField(max_length=128, null=True)
    updated_by = fields.CharField(max_length=128, null=True)
    deleted_by = fields.CharField(max_length=128, null=True)
    deleted_at = fields.DatetimeField(null=True) # Soft delete marker
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"
        indexes = [
            ("org_id",),
            ("created_by",),
            ("deleted_at",),  # Active user queries
        ]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
