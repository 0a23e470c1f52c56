# scripts/seed_data.py
import asyncio
from tortoise import timezone
from app.core.db import init_db, close_db
from app.models.user import User, UserRole
from app.services.user_service import create_user

DEMO_USERS = [
    ("Ada Admin", "ada@demo.example.com", UserRole.ADMIN),
    ("Ben Member", "ben@demo.example.com", UserRole.MEMBER),
    ("Cleo Member", "cleo@demo.example.com", UserRole.MEMBER),
]

async def seed():
    # create_user enqueues the welcome email, so only create users that don't exist yet
    for name, email, role in DEMO_USERS:
        user = await User.get_or_none(email=email)
        if not user:
            user = await create_user(actor_id="seed", name=name, email=email, role=role, org_id="demo-org")
        print("User:", user.email, str(user.id))

    # One soft-deleted user so the digest exclusion is visible
    gone, created = await User.get_or_create(
        email="gone@demo.example.com",
        defaults={"name": "Gone User", "org_id": "demo-org", "created_by": "seed"},
    )
    if gone.deleted_at is None:
        gone.deleted_at = timezone.now()
        gone.deleted_by = "seed"
        await gone.save()
    print("Soft-deleted user:", gone.email)

    print("Users seeded.")

async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
