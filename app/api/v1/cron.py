import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from app.core import config
from app.schemas.response import SuccessResponse
from app.services.digest_service import create_weekly_digest

router = APIRouter()
log = logging.getLogger("uvicorn")


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    """
    Required in production, optional in development: with CRON_SECRET set the
    caller must send 'Authorization: Bearer <secret>'.
    """
    if config.CRON_SECRET:
        if authorization != f"Bearer {config.CRON_SECRET}":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    elif config.ENVIRONMENT == "production":
        log.error("CRON_SECRET not set in production environment")
        raise HTTPException(status_code=500, detail="Server configuration error")


@router.post("/weekly-digest", response_model=SuccessResponse, dependencies=[Depends(verify_cron_secret)])
async def weekly_digest_endpoint(idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")):
    """
    Queues one digest email per active user. Meant to be called weekly by a cron
    service; send an Idempotency-Key (e.g. '2026-W07') so retries are safe.
    """
    try:
        result = await create_weekly_digest(idempotency_key)
        return SuccessResponse(data=result.to_response())
    except Exception as e:
        log.error(f"Error creating weekly digest events: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
