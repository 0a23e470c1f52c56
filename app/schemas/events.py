from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Known outbox event tags. Enqueueing is not restricted to these."""
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_UPDATED = "organization.updated"
    DIGEST_WEEKLY = "digest.weekly"


class EventPayload(BaseModel):
    """Base for payload schemas. Serialized as camelCase JSON in the outbox row."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserContactPayload(EventPayload):
    """Payload for 'user.created' and 'digest.weekly'."""
    user_id: str
    email: str
    name: str


class UserChangedPayload(EventPayload):
    """Payload for 'user.updated' and 'user.deleted'."""
    user_id: str
    changes: Dict[str, Any] = Field(default_factory=dict)


class OrganizationPayload(EventPayload):
    org_id: str
    name: Optional[str] = None


class AuditLogData(BaseModel):
    """Side-effect data returned by a handler; written by the dispatcher."""
    actor: str
    action: str
    target_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
