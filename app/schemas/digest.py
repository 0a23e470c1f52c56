from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from app.models.digest_batch import DigestBatchStatus


class DigestTriggerResult(BaseModel):
    """Outcome of a weekly digest trigger, rendered with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    user_count: int
    idempotency_key: Optional[str] = None
    status: Optional[DigestBatchStatus] = None
    idempotent: Optional[bool] = None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
