from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import uuid
from app.models.user import UserRole


class UserCreateRequest(BaseModel):
    """Schema for creating a user."""
    name: str = Field(..., min_length=1, description="Display name.")
    email: EmailStr
    role: UserRole = Field(UserRole.MEMBER, description="Role within the organization.")
    org_id: Optional[str] = None


class UserUpdateRequest(BaseModel):
    """Schema for a partial user update."""
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: UserRole
    org_id: Optional[str] = None
    created_by: Optional[str] = None
    deleted_at: Optional[str] = None
    created_at: str

    @classmethod
    def from_model(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            org_id=user.org_id,
            created_by=user.created_by,
            deleted_at=str(user.deleted_at) if user.deleted_at else None,
            created_at=str(user.created_at),
        )
