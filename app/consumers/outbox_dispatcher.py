import asyncio
import json
import logging
import signal
from typing import List, Optional
from tortoise import timezone
from tortoise.transactions import in_transaction
from app.models.audit_log import AuditLog
from app.models.outbox import OutboxEvent
from app.consumers.registry import HandlerRegistry, build_default_registry
from app.schemas.events import AuditLogData
from app.core.db import init_db, close_db
from app.core.config import POLLING_INTERVAL, MAX_ATTEMPTS, BATCH_SIZE

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("outbox_dispatcher")

NO_HANDLER_ERROR = "No handler registered for event type: {event_type}"
MAX_RETRIES_ERROR = "Max retries ({max_retries}) exceeded: {error}"


class OutboxDispatcher:
    """
    Polls the Outbox table and runs each pending event through its handler.

    Delivery is at-least-once. Each event's outcome is committed on its own, so a
    stop or crash mid-batch leaves the untouched events pending for the next poll.
    Only one dispatcher may run against a database: rows are not leased.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        poll_interval: float = POLLING_INTERVAL,
        batch_size: int = BATCH_SIZE,
        max_retries: int = MAX_ATTEMPTS,
        connection_name: str = "default",
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if batch_size < 1 or max_retries < 1:
            raise ValueError("batch_size and max_retries must be at least 1")

        self.registry = registry
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.connection_name = connection_name

        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._polling = False
        self._cycle_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopping.is_set()

    async def fetch_batch(self) -> List[OutboxEvent]:
        """Oldest pending events first, bounded by batch_size."""
        return await (
            OutboxEvent.filter(processed=False, attempts__lt=self.max_retries)
            .order_by("created_at")
            .limit(self.batch_size)
        )

    async def poll_once(self) -> int:
        """
        Runs one poll cycle and returns how many events were handled.
        Never raises: fetch failures and per-event failures are logged.
        Cycles on one dispatcher never overlap.
        """
        async with self._cycle_lock:
            self._polling = True
            try:
                try:
                    events = await self.fetch_batch()
                except Exception:
                    log.exception("Error polling outbox events")
                    return 0

                if not events:
                    return 0

                log.info(f"Processing {len(events)} outbox events...")
                # One event at a time, in created_at order
                for event in events:
                    try:
                        await self.process_event(event)
                    except Exception:
                        log.exception(f"Could not record outcome for event {event.id}; it stays pending")
                return len(events)
            finally:
                self._polling = False

    async def process_event(self, event: OutboxEvent) -> None:
        handler = self.registry.get(event.event_type)

        # Short circuit: nobody claims this type, so give up after one pass
        if handler is None:
            message = NO_HANDLER_ERROR.format(event_type=event.event_type)
            log.warning(message)
            await self._update_pending(
                event,
                processed=True,
                processed_at=timezone.now(),
                last_error=message,
            )
            return

        try:
            audit_data = await handler(event.payload)

            # Processed flag and audit record commit together or not at all
            async with in_transaction(self.connection_name) as conn:
                updated = await self._update_pending(
                    event,
                    conn=conn,
                    processed=True,
                    processed_at=timezone.now(),
                    attempts=event.attempts + 1,
                )
                if updated and audit_data is not None:
                    await self._write_audit_log(audit_data, conn)

            log.info(f"Event {event.id} ({event.event_type}) processed successfully")
        except Exception as e:
            await self._record_failure(event, str(e) or e.__class__.__name__)

    async def _record_failure(self, event: OutboxEvent, error_message: str) -> None:
        attempts = event.attempts + 1
        log.error(f"Error processing event {event.id}: {error_message}")

        if attempts >= self.max_retries:
            await self._update_pending(
                event,
                processed=True,
                processed_at=timezone.now(),
                attempts=attempts,
                last_error=MAX_RETRIES_ERROR.format(max_retries=self.max_retries, error=error_message),
            )
            log.error(f"Event {event.id} failed after {self.max_retries} attempts")
        else:
            await self._update_pending(event, attempts=attempts, last_error=error_message)
            log.info(f"Will retry event {event.id} (attempt {attempts}/{self.max_retries})")

    async def _update_pending(self, event: OutboxEvent, conn=None, **values) -> int:
        """Updates the row only while it is still pending; processed rows are immutable."""
        query = OutboxEvent.filter(id=event.id, processed=False)
        if conn is not None:
            query = query.using_db(conn)
        updated = await query.update(**values)
        if not updated:
            log.warning(f"Event {event.id} was already processed; leaving it untouched")
        return updated

    @staticmethod
    async def _write_audit_log(audit_data: AuditLogData, conn) -> AuditLog:
        return await AuditLog.create(
            actor=audit_data.actor,
            action=audit_data.action,
            target_id=audit_data.target_id,
            metadata=json.dumps(audit_data.metadata) if audit_data.metadata is not None else None,
            using_db=conn,
        )

    async def start(self) -> "OutboxDispatcher":
        """
        Polls once right away, then keeps polling every poll_interval seconds.
        If a previous stop left a cycle in flight, that cycle finishes first.
        """
        if self.running:
            raise RuntimeError("Outbox dispatcher is already running")

        log.info("Starting outbox dispatcher...")
        log.info(f"   Polling interval: {self.poll_interval}s")
        log.info(f"   Batch size: {self.batch_size}")
        log.info(f"   Max retries: {self.max_retries}")

        stopping = asyncio.Event()
        previous, self._stopping = self._task, stopping
        if previous is not None and not previous.done():
            log.info("Waiting for the previous poll cycle to finish...")
            await previous
        if stopping.is_set():
            return self

        await self.poll_once()
        if not stopping.is_set():
            self._task = asyncio.create_task(self._run(stopping), name="outbox-dispatcher")
        return self

    async def _run(self, stopping: asyncio.Event) -> None:
        # Each loop only honours the stop signal it was started with
        while not stopping.is_set():
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
            if stopping.is_set():
                break
            await self.poll_once()

    async def stop(self, release_storage: bool = True) -> None:
        """
        Prevents further poll cycles and releases the database connections.
        An in-flight cycle is not interrupted or awaited.
        """
        log.info("Stopping outbox dispatcher...")
        self._stopping.set()

        task = self._task
        if task is not None and not self._polling:
            # Idle between cycles: the stop signal wakes it and it exits at once
            await task

        if release_storage:
            await close_db()
        log.info("Outbox dispatcher stopped.")


async def start_outbox_dispatcher(registry: Optional[HandlerRegistry] = None, **options) -> OutboxDispatcher:
    """Builds a dispatcher (default handlers unless given) and starts it."""
    dispatcher = OutboxDispatcher(registry or build_default_registry(), **options)
    return await dispatcher.start()


async def stop_outbox_dispatcher(dispatcher: OutboxDispatcher, release_storage: bool = True) -> None:
    await dispatcher.stop(release_storage=release_storage)


async def run_dispatcher_service():
    """Main loop for the standalone dispatcher process."""
    await init_db()
    dispatcher = await start_outbox_dispatcher()
    log.info("--- Outbox Dispatcher Service Started ---")

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    await shutdown.wait()
    log.info("Received shutdown signal, shutting down gracefully...")
    await stop_outbox_dispatcher(dispatcher)


if __name__ == "__main__":
    try:
        asyncio.run(run_dispatcher_service())
    except KeyboardInterrupt:
        log.info("Dispatcher service stopped.")
