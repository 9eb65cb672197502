"""Sample load data for a fresh database.

seed_loads() replaces the collection (scripts/seed_db.py); seed_if_empty()
runs at startup when AUTO_SEED is on and never touches existing data.
"""

import json
import logging
from pathlib import Path

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)

SEED_FILE = Path(__file__).resolve().parent.parent / "data" / "seed_loads.json"


def read_seed_loads(path: Path = SEED_FILE) -> list[dict]:
    with open(path) as f:
        return json.load(f)


async def seed_loads(db: AsyncIOMotorDatabase, path: Path = SEED_FILE) -> int:
    loads = read_seed_loads(path)
    await db.loads.delete_many({})  # destructive: wipes all existing loads
    result = await db.loads.insert_many(loads)
    return len(result.inserted_ids)


async def seed_if_empty(db: AsyncIOMotorDatabase, path: Path = SEED_FILE) -> int:
    existing = await db.loads.count_documents({})
    if existing:
        logger.info("Database already contains %d loads, skipping auto-seed", existing)
        return 0
    logger.info("Loads collection is empty, auto-seeding from %s", path.name)
    result = await db.loads.insert_many(read_seed_loads(path))
    logger.info("Seeded %d loads", len(result.inserted_ids))
    return len(result.inserted_ids)
