import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Type, Union
from pydantic import BaseModel
from app.schemas.events import (
    AuditLogData,
    EventType,
    OrganizationPayload,
    UserChangedPayload,
    UserContactPayload,
)
from app.consumers.notification_consumer import (
    handle_organization_event,
    handle_user_changed,
    handle_user_created,
    handle_weekly_digest,
)

HandlerFunc = Callable[[Any], Awaitable[Optional[AuditLogData]]]


@dataclass(frozen=True)
class EventHandler:
    """A handler function plus the schema its payload is decoded into."""
    func: HandlerFunc
    payload_model: Optional[Type[BaseModel]] = None

    def decode(self, raw_payload: str) -> Any:
        """Decodes the stored JSON text. Without a schema the handler receives a plain dict."""
        if self.payload_model is None:
            return json.loads(raw_payload)
        return self.payload_model.model_validate_json(raw_payload)

    async def __call__(self, raw_payload: str) -> Optional[AuditLogData]:
        return await self.func(self.decode(raw_payload))


class HandlerRegistry:
    """
    Maps event-type tags to handlers. Built once at startup and passed to the
    dispatcher.
    """

    def __init__(self):
        self._handlers: Dict[str, EventHandler] = {}

    def register(
        self,
        event_type: Union[str, EventType],
        func: HandlerFunc,
        payload_model: Optional[Type[BaseModel]] = None,
    ) -> "HandlerRegistry":
        self._handlers[_tag(event_type)] = EventHandler(func=func, payload_model=payload_model)
        return self

    def get(self, event_type: str) -> Optional[EventHandler]:
        return self._handlers.get(_tag(event_type))

    def __contains__(self, event_type: str) -> bool:
        return _tag(event_type) in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def _tag(event_type: Union[str, EventType]) -> str:
    return event_type.value if isinstance(event_type, EventType) else str(event_type)


def build_default_registry() -> HandlerRegistry:
    """The handlers this service ships with."""
    return (
        HandlerRegistry()
        .register(EventType.USER_CREATED, handle_user_created, UserContactPayload)
        .register(EventType.DIGEST_WEEKLY, handle_weekly_digest, UserContactPayload)
        .register(EventType.USER_UPDATED, handle_user_changed, UserChangedPayload)
        .register(EventType.USER_DELETED, handle_user_changed, UserChangedPayload)
        .register(EventType.ORGANIZATION_CREATED, handle_organization_event, OrganizationPayload)
        .register(EventType.ORGANIZATION_UPDATED, handle_organization_event, OrganizationPayload)
    )
