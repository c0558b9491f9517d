"""
Database seeding script for development data.

Creates an admin, a manager, two drivers, a client, a partner company and
the default package status catalog, plus a few packages in the pool.
Run this script after the database is reachable.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from logitrack.app.db.session import AsyncSessionLocal, engine, Base
from logitrack.app.models.user import User
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.status import Status  # noqa: F401 (table registration)
from logitrack.app.models.package_history import PackageHistory  # noqa: F401
from logitrack.app.models.notification import Notification  # noqa: F401
from logitrack.app.models.enums import UserRole
from logitrack.app.core.jwt import token_for_user
from logitrack.app.services.package_store import PackageStore
from logitrack.app.services.status_catalog import StatusCatalog


async def seed_data():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        installed = await StatusCatalog.seed_defaults(db)
        print(f"✅ Status catalog: {installed} default statuses installed")

        result = await db.execute(select(User).where(User.username == "admin"))
        if result.scalar_one_or_none():
            print("ℹ️  Users already exist, skipping seeding")
            return

        users = [
            User(username="admin", email="admin@logitrack.local", first_name="Amina",
                 last_name="Benali", role=UserRole.ADMIN),
            User(username="manager", email="manager@logitrack.local", first_name="Karim",
                 last_name="Haddad", role=UserRole.MANAGER),
            User(username="livreur1", first_name="Youssef", last_name="Amrani", phone="0600000001",
                 role=UserRole.DRIVER, zone="Centre", vehicle="Scooter"),
            User(username="livreur2", first_name="Sara", last_name="Idrissi", phone="0600000002",
                 role=UserRole.DRIVER, zone="Nord", vehicle="Fourgonnette"),
        ]
        db.add_all(users)

        client = Client(name="Boutique Atlas", phone="0522000000", city="Casablanca")
        company = Company(name="Express Partenaire", contact="Service client")
        db.add_all([client, company])
        await db.commit()

        for price in (120.0, 80.0, 45.5):
            await PackageStore.create(db, {
                "client_id": client.id,
                "company_id": company.id,
                "price": price,
                "fee": 20.0,
                "delivery_address": "12 rue des Orangers, Casablanca",
            })

        print("\n🎉 Seeding completed successfully!")
        print("\nDevelopment tokens:")
        for user in users:
            token = token_for_user(user.id, user.username)
            print(f"  - {user.role.value:<8} {user.username:<10} {token}")


if __name__ == "__main__":
    asyncio.run(seed_data())
