import asyncio
import logging
from app.core import config

log = logging.getLogger("notification_service")


async def send_email(to: str, subject: str, body: str = "") -> None:
    """
    Simulated email sender. A real deployment would call the mail provider here;
    the call is not transactional, so callers must tolerate repeats.
    """
    log.info(f"Sending '{subject}' to {to}")
    await asyncio.sleep(config.EMAIL_SEND_DELAY)
    log.info(f"'{subject}' sent to {to}")
