import logging
from typing import Optional
from app.schemas.events import (
    AuditLogData,
    OrganizationPayload,
    UserChangedPayload,
    UserContactPayload,
)
from app.services.notification_service import send_email

log = logging.getLogger("notification_consumer")


async def handle_user_created(payload: UserContactPayload) -> Optional[AuditLogData]:
    """
    Consumer logic for 'user.created'. Sends the welcome email.
    The audit record is returned, not written, so the dispatcher can commit it
    together with the event's processed flag.
    """
    log.info(f"Processing user.created for {payload.user_id}")
    await send_email(payload.email, "Welcome!", f"Hi {payload.name}, welcome aboard.")

    return AuditLogData(
        actor="system",
        action="welcome_email_sent",
        target_id=payload.user_id,
        metadata={"email": payload.email, "name": payload.name},
    )


async def handle_weekly_digest(payload: UserContactPayload) -> Optional[AuditLogData]:
    """Consumer logic for 'digest.weekly'. Sends one user's weekly digest."""
    log.info(f"Processing digest.weekly for {payload.user_id}")
    await send_email(payload.email, "Your weekly digest", f"Hi {payload.name}, here is your week.")

    return AuditLogData(
        actor="system",
        action="digest_email_sent",
        target_id=payload.user_id,
        metadata={"email": payload.email, "name": payload.name},
    )


async def handle_user_changed(payload: UserChangedPayload) -> Optional[AuditLogData]:
    # Hook for downstream sync (CRM, search index); nothing to record yet
    log.info(f"User {payload.user_id} changed: {sorted(payload.changes)}")
    return None


async def handle_organization_event(payload: OrganizationPayload) -> Optional[AuditLogData]:
    log.info(f"Organization {payload.org_id} event received")
    return None
