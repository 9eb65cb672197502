"""Seed the loads collection with mock data from data/seed_loads.json.

Replaces all existing loads with the bundled sample data.

Usage: .venv/bin/python scripts/seed_db.py
"""

import asyncio

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.seed import seed_loads


async def seed():
    client = AsyncIOMotorClient(settings.MONGODB_URI)
    db = client[settings.DATABASE_NAME]

    count = await seed_loads(db)
    print(f"Seeded {count} loads into '{settings.DATABASE_NAME}'")

    client.close()


if __name__ == "__main__":
    asyncio.run(seed())
