import json
import pytest
from uuid import uuid4
from unittest.mock import AsyncMock, patch
from app.models.audit_log import AuditLog
from app.models.outbox import OutboxEvent
from app.models.user import User, UserRole
from app.services.user_service import create_user, list_users, update_user, soft_delete_user


@pytest.mark.asyncio
async def test_create_user_writes_user_event_and_audit(db):
    user = await create_user(actor_id="admin-1", name="Ada", email="ada@example.com", org_id="org-1")

    assert user.created_by == "admin-1"
    assert user.role == UserRole.MEMBER

    event = await OutboxEvent.get(aggregate_id=str(user.id))
    assert event.event_type == "user.created"
    assert json.loads(event.payload) == {"userId": str(user.id), "email": "ada@example.com", "name": "Ada"}

    audit = await AuditLog.get(action="user_created")
    assert audit.actor == "admin-1"
    assert audit.target_id == str(user.id)
    assert json.loads(audit.metadata)["role"] == "member"


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_without_side_effects(db):
    await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")

    with pytest.raises(ValueError) as excinfo:
        await create_user(actor_id="admin-1", name="Other Ada", email="ada@example.com")

    assert "Email already exists" in str(excinfo.value)
    assert await User.all().count() == 1
    assert await OutboxEvent.all().count() == 1


@pytest.mark.asyncio
@patch('app.services.user_service.create_outbox_event', new_callable=AsyncMock)
async def test_failed_enqueue_rolls_back_user(mock_outbox_event, db):
    mock_outbox_event.side_effect = RuntimeError("outbox insert failed")

    with pytest.raises(RuntimeError):
        await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")

    assert await User.all().count() == 0
    assert await AuditLog.all().count() == 0


@pytest.mark.asyncio
async def test_update_user_emits_changes(db):
    user = await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")

    updated = await update_user("admin-2", user.id, name="Ada L.", role=UserRole.ADMIN)

    assert updated.name == "Ada L."
    assert updated.updated_by == "admin-2"
    event = await OutboxEvent.get(event_type="user.updated")
    assert json.loads(event.payload) == {"userId": str(user.id), "changes": {"name": "Ada L.", "role": "admin"}}


@pytest.mark.asyncio
async def test_update_without_changes_emits_nothing(db):
    user = await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")

    await update_user("admin-1", user.id, name="Ada")

    assert await OutboxEvent.filter(event_type="user.updated").count() == 0


@pytest.mark.asyncio
async def test_soft_delete_keeps_record_and_emits_event(db):
    user = await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")

    await soft_delete_user("admin-1", user.id)

    stored = await User.get(id=user.id)
    assert stored.is_deleted
    assert stored.deleted_by == "admin-1"
    assert await OutboxEvent.filter(event_type="user.deleted", aggregate_id=str(user.id)).count() == 1
    assert await AuditLog.filter(action="user_deleted").count() == 1

    with pytest.raises(ValueError):
        await soft_delete_user("admin-1", user.id)


@pytest.mark.asyncio
async def test_list_users_hides_deleted_by_default(db):
    ada = await create_user(actor_id="admin-1", name="Ada", email="ada@example.com")
    await create_user(actor_id="admin-1", name="Ben", email="ben@example.com")
    await soft_delete_user("admin-1", ada.id)

    assert [u.email for u in await list_users()] == ["ben@example.com"]
    assert len(await list_users(include_deleted=True)) == 2


@pytest.mark.asyncio
async def test_missing_user_raises(db):
    with pytest.raises(ValueError):
        await update_user("admin-1", uuid4(), name="Ghost")
