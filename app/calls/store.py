"""Call outcome records in the ``calls`` collection, one per completed call."""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.calls.models import CallRecord
from app.errors import StorageUnavailable

logger = logging.getLogger(__name__)

# The dashboard list shows at most this many recent calls.
RECENT_CALLS_LIMIT = 100


class CallStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.calls

    async def insert(self, record: CallRecord) -> str:
        try:
            await self.collection.insert_one(record.model_dump())
        except PyMongoError as exc:
            logger.exception("Failed to save call record (run %s)", record.run_id)
            raise StorageUnavailable("Could not save call record") from exc
        logger.info("Saved call %s (outcome=%s, sentiment=%s)", record.call_id, record.outcome, record.sentiment)
        return record.call_id

    async def list_recent(self, limit: int = RECENT_CALLS_LIMIT) -> list[CallRecord]:
        try:
            cursor = self.collection.find({}, {"_id": 0}).sort("created_at", -1)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            logger.exception("Failed to list calls")
            raise StorageUnavailable("Could not read calls") from exc
        return [CallRecord(**doc) for doc in docs]

    async def get(self, call_id: str) -> Optional[CallRecord]:
        try:
            doc = await self.collection.find_one({"call_id": call_id}, {"_id": 0})
        except PyMongoError as exc:
            logger.exception("Failed to fetch call %s", call_id)
            raise StorageUnavailable("Could not read call") from exc
        return CallRecord(**doc) if doc else None
