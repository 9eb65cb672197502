from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.events.models import CallEvent


class ActivityResponse(BaseModel):
    count: int
    activities: list[CallEvent]


class MetricsResponse(BaseModel):
    total_calls: int
    booked_calls: int
    success_rate: float  # BOOKED / total, as a percentage with 2 decimals
    avg_negotiation_rounds: float
    avg_final_price: float
    calls_by_outcome: dict[str, int]
    calls_by_sentiment: dict[str, int]
    recent_activities_24h: dict[str, int]  # event_type -> count


class SessionSummary(BaseModel):
    run_id: str
    first_timestamp: datetime
    latest_timestamp: datetime
    total_activities: int
    latest_event_type: Optional[str] = None
    has_ended: bool  # A CALL_ENDED event was logged for this run


class SessionsResponse(BaseModel):
    count: int
    sessions: list[SessionSummary]
