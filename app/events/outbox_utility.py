import json
from typing import Dict, Any, Union
from pydantic import BaseModel
from app.models.outbox import OutboxEvent


def serialize_payload(payload: Union[BaseModel, Dict[str, Any]]) -> str:
    """Renders an event payload as the JSON text stored in the outbox row."""
    if isinstance(payload, BaseModel):
        return payload.model_dump_json(by_alias=True)
    return json.dumps(payload, default=str)


async def create_outbox_event(
    aggregate_id: Any,
    event_type: str,
    payload: Union[BaseModel, Dict[str, Any]],
    conn: Any = None
) -> OutboxEvent:
    """
    Creates a new Outbox event record using the provided database connection (transaction).

    CRITICAL: Passing 'conn' ensures the event is created atomically with the business data.
    If the caller's transaction rolls back, the event is rolled back with it.
    """
    return await OutboxEvent.create(
        aggregate_id=str(aggregate_id),
        event_type=str(getattr(event_type, "value", event_type)),
        payload=serialize_payload(payload),
        processed=False,
        attempts=0,
        using_db=conn
    )
