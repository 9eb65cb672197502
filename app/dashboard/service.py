import logging
from datetime import UTC, datetime, timedelta

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.dashboard.models import MetricsResponse, SessionSummary
from app.errors import StorageUnavailable
from app.events.models import CALL_ENDED

logger = logging.getLogger(__name__)

SESSIONS_LIMIT = 50
RECENT_WINDOW = timedelta(hours=24)


def _counts_by(results: list[dict]) -> dict[str, int]:
    """{_id: key, count: n} rows -> {key: n}, with a null key reported as UNKNOWN."""
    return {(r["_id"] or "UNKNOWN"): r["count"] for r in results}


class DashboardService:
    """Read-only aggregations over the ``calls`` and ``call_events`` collections."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def _aggregate(self, collection, pipeline: list[dict]) -> list[dict]:
        try:
            return await collection.aggregate(pipeline).to_list(length=None)
        except PyMongoError as exc:
            logger.exception("Dashboard aggregation failed on %s", collection.name)
            raise StorageUnavailable("Could not compute dashboard data") from exc

    # -----------------------------------------------------------------------
    # Metrics
    # -----------------------------------------------------------------------

    async def get_metrics(self) -> MetricsResponse:
        totals_pipeline: list[dict] = [
            {
                "$group": {
                    "_id": None,
                    "total_calls": {"$sum": 1},
                    "booked_calls": {
                        "$sum": {"$cond": [{"$eq": ["$outcome", "BOOKED"]}, 1, 0]}
                    },
                    # $avg ignores calls with no rounds or price
                    "avg_negotiation_rounds": {"$avg": "$negotiation_rounds"},
                    "avg_final_price": {"$avg": "$final_price"},
                }
            }
        ]
        outcome_pipeline: list[dict] = [
            {"$group": {"_id": "$outcome", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]
        sentiment_pipeline: list[dict] = [
            {"$group": {"_id": "$sentiment", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ]
        since = datetime.now(UTC).replace(tzinfo=None) - RECENT_WINDOW
        activity_pipeline: list[dict] = [
            {"$match": {"timestamp": {"$gte": since}}},
            {"$group": {"_id": "$event_type", "count": {"$sum": 1}}},
        ]

        totals = await self._aggregate(self.db.calls, totals_pipeline)
        by_outcome = await self._aggregate(self.db.calls, outcome_pipeline)
        by_sentiment = await self._aggregate(self.db.calls, sentiment_pipeline)
        recent = await self._aggregate(self.db.call_events, activity_pipeline)

        row = totals[0] if totals else {}
        total_calls = row.get("total_calls", 0)
        booked_calls = row.get("booked_calls", 0)
        success_rate = round(booked_calls / total_calls * 100, 2) if total_calls else 0.0

        return MetricsResponse(
            total_calls=total_calls,
            booked_calls=booked_calls,
            success_rate=success_rate,
            avg_negotiation_rounds=round(row.get("avg_negotiation_rounds") or 0, 2),
            avg_final_price=round(row.get("avg_final_price") or 0, 2),
            calls_by_outcome=_counts_by(by_outcome),
            calls_by_sentiment=_counts_by(by_sentiment),
            recent_activities_24h=_counts_by(recent),
        )

    # -----------------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------------

    async def get_sessions(self, limit: int = SESSIONS_LIMIT) -> list[SessionSummary]:
        """Runs with their first/latest activity, most recently active first."""
        pipeline: list[dict] = [
            # Ascending so $last picks each run's latest event
            {"$sort": {"timestamp": 1}},
            {
                "$group": {
                    "_id": "$run_id",
                    "first_timestamp": {"$min": "$timestamp"},
                    "latest_timestamp": {"$max": "$timestamp"},
                    "total_activities": {"$sum": 1},
                    "latest_event_type": {"$last": "$event_type"},
                    "has_ended": {
                        "$max": {"$cond": [{"$eq": ["$event_type", CALL_ENDED]}, True, False]}
                    },
                }
            },
            {"$sort": {"latest_timestamp": -1}},
            {"$limit": limit},
        ]
        results = await self._aggregate(self.db.call_events, pipeline)
        return [
            SessionSummary(
                run_id=r["_id"],
                first_timestamp=r["first_timestamp"],
                latest_timestamp=r["latest_timestamp"],
                total_activities=r["total_activities"],
                latest_event_type=r.get("latest_event_type"),
                has_ended=bool(r.get("has_ended")),
            )
            for r in results
        ]
