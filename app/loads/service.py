import logging
import re
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.errors import StorageUnavailable
from app.loads.models import Load

logger = logging.getLogger(__name__)

# Safety cap so a broad search never returns the whole collection.
MAX_RESULTS = 100


def _is_state_abbreviation(value: str) -> bool:
    """Check if the input looks like a US state abbreviation (exactly 2 letters)."""
    stripped = value.strip()
    return len(stripped) == 2 and stripped.isalpha()


def _build_location_regex(value: str) -> str:
    """Build a MongoDB regex for origin/destination matching.

    A state abbreviation ("CA") is anchored to the state part after the comma,
    so "CA" does not match "Chicago, IL". Anything else is an escaped
    substring match, so "denver" matches "Denver, CO".
    """
    stripped = value.strip()
    if _is_state_abbreviation(stripped):
        return r",\s*" + re.escape(stripped) + "$"
    return re.escape(stripped)


def build_search_query(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    equipment_type: Optional[str] = None,
    min_rate: Optional[float] = None,
    max_rate: Optional[float] = None,
    max_weight: Optional[float] = None,
) -> dict:
    """Translate search filters into a MongoDB query. Only booked-out loads are hidden."""
    query: dict = {"status": "available"}

    if origin:
        query["origin"] = {"$regex": _build_location_regex(origin), "$options": "i"}
    if destination:
        query["destination"] = {"$regex": _build_location_regex(destination), "$options": "i"}
    if equipment_type:
        # Exact equipment type, case-insensitive
        query["equipment_type"] = {
            "$regex": "^" + re.escape(equipment_type.strip()) + "$",
            "$options": "i",
        }

    if min_rate is not None or max_rate is not None:
        rate_filter = {}
        if min_rate is not None:
            rate_filter["$gte"] = min_rate
        if max_rate is not None:
            rate_filter["$lte"] = max_rate
        query["loadboard_rate"] = rate_filter

    if max_weight is not None:
        query["weight"] = {"$lte": max_weight}

    return query


class LoadCatalog:
    """Read access to the ``loads`` collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.loads

    async def search(self, **filters) -> list[Load]:
        """Search available loads, earliest pickup first."""
        query = build_search_query(**filters)
        logger.info("Searching loads with %s", {k: v for k, v in filters.items() if v is not None})
        try:
            cursor = self.collection.find(query, {"_id": 0}).sort("pickup_datetime", 1)
            results = await cursor.to_list(length=MAX_RESULTS)
        except PyMongoError as exc:
            logger.exception("Load search failed")
            raise StorageUnavailable("Could not search loads") from exc
        logger.info("Found %d loads", len(results))
        return [Load(**doc) for doc in results]

    async def get(self, load_id: str) -> Optional[Load]:
        """Fetch a single load by its load_id, or None."""
        try:
            doc = await self.collection.find_one({"load_id": load_id}, {"_id": 0})
        except PyMongoError as exc:
            logger.exception("Failed to fetch load %s", load_id)
            raise StorageUnavailable("Could not fetch load") from exc
        if not doc:
            logger.info("Load not found: %s", load_id)
            return None
        return Load(**doc)
