"""
Database seeding script for initial users.

Creates one MANAGER, one OPERATOR and one ACCOUNTANT for development.
Run this script after the database is set up but before first use; further
accounts are created by a manager via POST /api/auth/register.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.shipment import Shipment  # noqa: F401
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from sqlalchemy import select

SEED_USERS = [
    ("manager@shipments.local", "manager123", "Default Manager", UserRole.MANAGER),
    ("operator@shipments.local", "operator123", "Default Operator", UserRole.OPERATOR),
    ("accountant@shipments.local", "accountant123", "Default Accountant", UserRole.ACCOUNTANT),
]


async def seed_users():
    """
    Seed initial users with different roles.

    Existing emails are left untouched, so the script is safe to re-run.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        created = 0
        for email, password, name, role in SEED_USERS:
            result = await db.execute(select(User).where(User.email == email))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value} user {email} already exists, skipping")
                continue

            db.add(User(
                email=email,
                password_hash=get_password_hash(password),
                name=name,
                role=role,
            ))
            created += 1
            print(f"✅ Created {role.value} user ({email} / {password})")

        await db.commit()

        print(f"\n🎉 User seeding completed, {created} user(s) created")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_users())
