"""Append-only event log of call lifecycle events, backed by MongoDB."""

import logging
from datetime import UTC, datetime
from typing import Any, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.errors import StorageUnavailable
from app.events.models import CallEvent, EventType

logger = logging.getLogger(__name__)


class CallEventStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.call_events

    async def append(self, run_id: str, event_type: EventType, data: Optional[dict[str, Any]] = None) -> str:
        event = CallEvent(
            event_id=uuid4().hex,
            run_id=run_id,
            event_type=event_type,
            data=data or {},
            timestamp=datetime.now(UTC).replace(tzinfo=None),
        )
        try:
            await self.collection.insert_one(event.model_dump())
        except PyMongoError as exc:
            logger.exception("Failed to append %s event for run %s", event_type, run_id)
            raise StorageUnavailable("Could not record call event") from exc
        logger.info("Logged %s event for run %s", event_type, run_id)
        return event.event_id

    async def list_recent(self, limit: int = 50, run_id: Optional[str] = None) -> list[CallEvent]:
        """Newest events first, optionally restricted to a single run."""
        query = {"run_id": run_id} if run_id else {}
        try:
            cursor = self.collection.find(query, {"_id": 0}).sort("timestamp", -1)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            logger.exception("Failed to read call events")
            raise StorageUnavailable("Could not read call events") from exc
        return [CallEvent(**doc) for doc in docs]


async def append_event(
    events: CallEventStore,
    run_id: str,
    event_type: EventType,
    data: Optional[dict[str, Any]] = None,
) -> Optional[str]:
    """Best-effort append for events that report an outcome already settled.

    A failed event write is logged and swallowed, so the caller still gets the
    saved round, call or verification it reports on. Returns the event id, or
    None when the write failed.
    """
    try:
        return await events.append(run_id, event_type, data)
    except StorageUnavailable:
        logger.warning("Dropped %s event for run %s", event_type, run_id)
        return None
