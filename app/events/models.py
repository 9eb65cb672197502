from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# Lifecycle events this service writes. CallEvent.event_type stays a plain
# str so the dashboard can read events posted by other producers.
CARRIER_VERIFIED = "CARRIER_VERIFIED"
NEGOTIATION_ROUND = "NEGOTIATION_ROUND"
LOAD_ACCEPTED = "LOAD_ACCEPTED"
CALL_ENDED = "CALL_ENDED"

EventType = Literal["CARRIER_VERIFIED", "NEGOTIATION_ROUND", "LOAD_ACCEPTED", "CALL_ENDED"]


class CallEvent(BaseModel):
    """One entry of the append-only call activity log, keyed by run_id."""

    event_id: str
    run_id: str  # Voice platform run id; same value as a negotiation session_ref
    event_type: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
