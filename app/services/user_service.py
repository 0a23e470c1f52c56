import json
from typing import List, Optional
from uuid import UUID
from tortoise import timezone
from tortoise.transactions import in_transaction
from app.models.audit_log import AuditLog
from app.models.user import User, UserRole
from app.events.outbox_utility import create_outbox_event
from app.schemas.events import EventType, UserChangedPayload, UserContactPayload


async def create_user(
    actor_id: str,
    name: str,
    email: str,
    role: UserRole = UserRole.MEMBER,
    org_id: Optional[str] = None,
) -> User:
    """
    Creates the User, its 'user.created' OutboxEvent and the audit entry atomically.
    The welcome email itself is sent later by the outbox dispatcher.
    """
    async with in_transaction() as conn:
        if await User.filter(email=email).using_db(conn).exists():
            raise ValueError("Email already exists")

        user = await User.create(
            name=name,
            email=email,
            role=role,
            org_id=org_id,
            created_by=actor_id,
            using_db=conn
        )

        # ATOMIC EVENT: Welcome email (handled by the dispatcher)
        await create_outbox_event(
            aggregate_id=user.id,
            event_type=EventType.USER_CREATED,
            payload=UserContactPayload(user_id=str(user.id), email=user.email, name=user.name),
            conn=conn
        )

        await AuditLog.create(
            actor=actor_id,
            action="user_created",
            target_id=str(user.id),
            metadata=json.dumps({"email": user.email, "name": user.name, "role": user.role.value}),
            using_db=conn
        )

    return user


async def list_users(include_deleted: bool = False) -> List[User]:
    """Newest first. Soft-deleted users are hidden unless asked for."""
    query = User.all() if include_deleted else User.filter(deleted_at__isnull=True)
    return await query.order_by("-created_at")


async def get_user_by_id(user_id: UUID) -> Optional[User]:
    """The user unless missing or soft-deleted."""
    return await User.get_or_none(id=user_id, deleted_at__isnull=True)


async def get_active_user(user_id: UUID, conn=None) -> User:
    user = await User.get_or_none(id=user_id, deleted_at__isnull=True).using_db(conn)
    if not user:
        raise ValueError("User not found")
    return user


async def update_user(
    actor_id: str,
    user_id: UUID,
    name: Optional[str] = None,
    role: Optional[UserRole] = None,
) -> User:
    """Applies name/role changes and emits 'user.updated' in the same transaction."""
    async with in_transaction() as conn:
        user = await get_active_user(user_id, conn)

        changes = {}
        if name is not None and name != user.name:
            changes["name"] = name
            user.name = name
        if role is not None and role != user.role:
            changes["role"] = role.value
            user.role = role
        if not changes:
            return user

        user.updated_by = actor_id
        await user.save(using_db=conn)

        await create_outbox_event(
            aggregate_id=user.id,
            event_type=EventType.USER_UPDATED,
            payload=UserChangedPayload(user_id=str(user.id), changes=changes),
            conn=conn
        )
        await AuditLog.create(
            actor=actor_id,
            action="user_updated",
            target_id=str(user.id),
            metadata=json.dumps(changes),
            using_db=conn
        )

    return user


async def soft_delete_user(actor_id: str, user_id: UUID) -> User:
    """Marks the user deleted (history is kept) and emits 'user.deleted'."""
    async with in_transaction() as conn:
        user = await get_active_user(user_id, conn)

        user.deleted_at = timezone.now()
        user.deleted_by = actor_id
        await user.save(update_fields=["deleted_at", "deleted_by", "updated_at"], using_db=conn)

        await create_outbox_event(
            aggregate_id=user.id,
            event_type=EventType.USER_DELETED,
            payload=UserChangedPayload(user_id=str(user.id), changes={"deleted": True}),
            conn=conn
        )
        await AuditLog.create(
            actor=actor_id,
            action="user_deleted",
            target_id=str(user.id),
            metadata=json.dumps({"email": user.email}),
            using_db=conn
        )

    return user
