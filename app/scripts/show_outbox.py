# scripts/show_outbox.py
import argparse
import asyncio
from app.core.db import init_db, close_db
from app.models.audit_log import AuditLog
from app.models.outbox import OutboxEvent


def event_status(event: OutboxEvent) -> str:
    if not event.processed:
        return "PENDING"
    # last_error survives a successful retry, so only terminal messages mean failure
    if event.last_error and event.last_error.startswith(("Max retries", "No handler")):
        return "ABANDONED"
    return "DONE"


async def show(limit: int):
    events = await OutboxEvent.all().order_by("-created_at").limit(limit)
    print(f"\n--- Outbox events (latest {len(events)}) ---")
    for e in events:
        print(f"{e.created_at}  {event_status(e):9} {e.event_type:22} attempts={e.attempts} aggregate={e.aggregate_id}")
        if e.last_error:
            print(f"    last_error: {e.last_error}")

    logs = await AuditLog.all().order_by("-created_at").limit(limit)
    print(f"\n--- Audit log (latest {len(logs)}) ---")
    for entry in logs:
        print(f"{entry.created_at}  {entry.actor:12} {entry.action:22} target={entry.target_id} {entry.metadata or ''}")

async def main():
    parser = argparse.ArgumentParser(description="Print recent outbox events and audit log entries.")
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()

    await init_db(generate_schemas=False)
    await show(args.limit)
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
