import logging
from typing import Optional
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction
from app.models.digest_batch import DigestBatch, DigestBatchStatus
from app.models.user import User
from app.events.outbox_utility import create_outbox_event
from app.schemas.digest import DigestTriggerResult
from app.schemas.events import EventType, UserContactPayload

log = logging.getLogger("digest_service")

CREATED_MESSAGE = "Weekly digest events created successfully"
REPLAY_MESSAGE = "Digest events already created for this idempotency key"
NO_USERS_MESSAGE = "No active users to send digest to"


def _replay(batch: DigestBatch) -> DigestTriggerResult:
    return DigestTriggerResult(
        message=REPLAY_MESSAGE,
        user_count=batch.user_count,
        status=batch.status,
        idempotent=True,
    )


async def create_weekly_digest(idempotency_key: Optional[str] = None) -> DigestTriggerResult:
    """
    Enqueues one 'digest.weekly' event per active user.

    With an idempotency key, the first call records a DigestBatch in the same
    transaction as the events; later calls with that key get the recorded result
    back and enqueue nothing. Without a key every call enqueues a fresh set.
    """
    if idempotency_key:
        existing = await DigestBatch.get_or_none(idempotency_key=idempotency_key)
        if existing:
            log.info(f"Idempotent replay for digest batch {idempotency_key}")
            return _replay(existing)
    else:
        idempotency_key = None

    users = await User.filter(deleted_at__isnull=True).order_by("created_at")
    if not users:
        return DigestTriggerResult(message=NO_USERS_MESSAGE, user_count=0)

    try:
        # Events and batch record commit together, so a retried caller never re-enqueues
        async with in_transaction() as conn:
            for user in users:
                await create_outbox_event(
                    aggregate_id=user.id,
                    event_type=EventType.DIGEST_WEEKLY,
                    payload=UserContactPayload(user_id=str(user.id), email=user.email, name=user.name),
                    conn=conn
                )
            await DigestBatch.create(
                idempotency_key=idempotency_key,
                user_count=len(users),
                status=DigestBatchStatus.COMPLETED,
                using_db=conn
            )
    except IntegrityError:
        # A concurrent call with the same key committed first; ours was rolled back
        winner = await DigestBatch.get_or_none(idempotency_key=idempotency_key) if idempotency_key else None
        if winner is None:
            raise
        return _replay(winner)

    log.info(f"Created weekly digest events for {len(users)} users (key={idempotency_key})")
    return DigestTriggerResult(
        message=CREATED_MESSAGE,
        user_count=len(users),
        idempotency_key=idempotency_key,
    )
