"""
Seed default role templates and the first administrator account.
Run once after the initial migration; existing rows are left untouched.

The admin credentials come from SEED_ADMIN_USERNAME / SEED_ADMIN_PASSWORD /
SEED_ADMIN_MAIL. Without SEED_ADMIN_PASSWORD only the templates are seeded.

Usage:
    python -m scripts.seed_access_roles
"""
import asyncio
import os
import sys

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.admin.permissions import AccessSlot, flags_from_slots, full_flags
from app.crud.access import AccessRepository
from app.crud.user import UserRepository
from app.database import AsyncSessionLocal


ADMIN_PROFILE = "admin"

# Role templates keyed by profile name
DEFAULT_TEMPLATES = {
    ADMIN_PROFILE: full_flags(),
    "supervisor": flags_from_slots(
        [
            AccessSlot.GUESTS_VIEW,
            AccessSlot.GUESTS_MANAGE,
            AccessSlot.USERS_VIEW,
            AccessSlot.LOGS_VIEW,
        ]
    ),
    "operator": flags_from_slots([AccessSlot.GUESTS_VIEW, AccessSlot.GUESTS_MANAGE]),
    "viewer": flags_from_slots([AccessSlot.GUESTS_VIEW, AccessSlot.USERS_VIEW]),
}


async def seed_access_roles():
    """Seed role templates, then the admin user and its grant."""
    async with AsyncSessionLocal() as session:
        access_repo = AccessRepository(session)
        user_repo = UserRepository(session)

        print("Seeding role templates...")
        templates = {}
        for profile, flags in DEFAULT_TEMPLATES.items():
            existing = await access_repo.get_template(profile)
            if existing:
                print(f"  Template '{profile}' already exists, skipping...")
                templates[profile] = existing
                continue

            templates[profile] = await access_repo.create_template(profile, flags)
            print(f"  ✓ Created template: {profile} ({len(templates[profile].enabled_slots())} slots)")

        password = os.getenv("SEED_ADMIN_PASSWORD")
        if not password:
            await session.commit()
            print("\nSEED_ADMIN_PASSWORD not set, skipping admin user")
            return

        username = os.getenv("SEED_ADMIN_USERNAME", "admin")
        print(f"\nSeeding admin user '{username}'...")
        user = await user_repo.get_by_username(username)
        if user:
            print(f"  User '{username}' already exists, skipping...")
        else:
            user = await user_repo.create(
                username=username,
                password=password,
                mail=os.getenv("SEED_ADMIN_MAIL"),
                profile=ADMIN_PROFILE,
            )
            print(f"  ✓ Created user: {username}")

        if await access_repo.get_for_user(user.id) is None:
            await access_repo.grant_from_template(user.id, templates[ADMIN_PROFILE])
            print(f"  ✓ Granted '{ADMIN_PROFILE}' access to {username}")

        await session.commit()
        print("\n✅ Access seeding completed")


if __name__ == "__main__":
    asyncio.run(seed_access_roles())
