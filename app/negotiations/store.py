"""Persistence of negotiation rounds in the ``negotiations`` collection.

Rounds are append-only: this store inserts and reads, it never updates or
deletes. Driver failures surface as StorageUnavailable so callers can tell a
broken database apart from an empty history.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.errors import StorageUnavailable
from app.negotiations.models import NegotiationRound

logger = logging.getLogger(__name__)


class NegotiationStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.negotiations

    async def append(self, negotiation_round: NegotiationRound) -> str:
        try:
            await self.collection.insert_one(negotiation_round.model_dump())
        except PyMongoError as exc:
            logger.exception(
                "Failed to save negotiation round %s for load %s",
                negotiation_round.round,
                negotiation_round.load_id,
            )
            raise StorageUnavailable("Could not save negotiation round") from exc
        logger.info(
            "Saved negotiation %s (load %s, round %s, %s)",
            negotiation_round.negotiation_id,
            negotiation_round.load_id,
            negotiation_round.round,
            negotiation_round.action,
        )
        return negotiation_round.negotiation_id

    async def _find(self, query: dict, sort: list[tuple[str, int]], limit: Optional[int] = None) -> list[NegotiationRound]:
        try:
            cursor = self.collection.find(query, {"_id": 0}).sort(sort)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            logger.exception("Failed to read negotiation rounds for %s", query)
            raise StorageUnavailable("Could not read negotiation history") from exc
        return [NegotiationRound(**doc) for doc in docs]

    async def list_by_session(self, session_ref: str) -> list[NegotiationRound]:
        """All rounds of one call, ascending by round."""
        return await self._find({"session_ref": session_ref}, [("round", 1), ("created_at", 1)])

    async def list_by_load(self, load_id: str) -> list[NegotiationRound]:
        """All rounds ever negotiated on a load, most recent first."""
        return await self._find({"load_id": load_id}, [("created_at", -1), ("round", -1)])

    async def latest_for(self, load_id: str, session_ref: Optional[str]) -> Optional[NegotiationRound]:
        """Most recent round for a (session, load) pair.

        A missing session_ref matches only rounds that were recorded without one.
        """
        rounds = await self._find(
            {"load_id": load_id, "session_ref": session_ref},
            [("created_at", -1), ("round", -1)],
            limit=1,
        )
        return rounds[0] if rounds else None


class KeyedLock:
    """One asyncio.Lock per key, created on first use.

    Serializes read-then-append sequences for the same (session, load) pair
    within this process. Locks are dropped once nobody holds or waits on them.
    """

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: defaultdict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._locks
