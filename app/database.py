"""MongoDB connection lifecycle management.

Call connect_db() at app startup (via the FastAPI lifespan) before using
get_database(). Route handlers never touch the client directly: they receive
stores built on top of the database handle through FastAPI dependencies
(see app.dependencies).
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.config import settings

logger = logging.getLogger(__name__)

client: Optional[AsyncIOMotorClient] = None


def get_database() -> AsyncIOMotorDatabase:
    if client is None:
        raise RuntimeError("Database client is not initialized. Call connect_db() first.")
    return client[settings.DATABASE_NAME]


async def connect_db() -> None:
    global client
    client = AsyncIOMotorClient(settings.MONGODB_URI)
    logger.info("Connected to MongoDB database '%s'", settings.DATABASE_NAME)


async def disconnect_db() -> None:
    global client
    if client:
        client.close()
        client = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the stores query by. Idempotent."""
    await db.loads.create_index("load_id", unique=True)
    await db.negotiations.create_index("negotiation_id", unique=True)
    await db.negotiations.create_index([("session_ref", ASCENDING), ("round", ASCENDING)])
    await db.negotiations.create_index([("load_id", ASCENDING), ("created_at", DESCENDING)])
    await db.call_events.create_index([("run_id", ASCENDING), ("timestamp", DESCENDING)])
    await db.call_events.create_index([("timestamp", DESCENDING)])
    await db.calls.create_index("call_id", unique=True)
    await db.calls.create_index([("created_at", DESCENDING)])
