import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator


class HappyRobotWebhook(BaseModel):
    """Call-completed payload posted by the voice AI platform.

    Every field is optional: the platform fills them from its classify and
    extract nodes, and sends "" for anything it could not extract.
    """

    run_id: Optional[str] = None
    mc_number: Optional[str] = None
    carrier: Optional[str] = None
    load_id: Optional[str] = None
    final_price: Optional[float] = None
    outcome: Optional[str] = None
    outcome_reason: Optional[str] = None
    sentiment: Optional[str] = None
    negotiation_rounds: Optional[int] = None
    transcript: Optional[str] = None
    call_end: Optional[datetime] = None
    duration: Optional[float] = None  # Seconds

    model_config = {"extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def _empty_strings_to_none(cls, data):
        if isinstance(data, dict):
            return {k: (None if v == "" else v) for k, v in data.items()}
        return data

    @field_validator("mc_number", mode="before")
    @classmethod
    def _mc_number_to_str(cls, v):
        # The platform sends MC numbers as JSON numbers or strings
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("transcript", mode="before")
    @classmethod
    def _transcript_to_str(cls, v):
        # Turn-by-turn transcripts arrive as a list of messages
        if isinstance(v, (list, dict)):
            return json.dumps(v)
        return v

    @field_validator("outcome", "sentiment", mode="after")
    @classmethod
    def _upper(cls, v):
        return v.strip().upper() if v else v


class CallRecord(BaseModel):
    """One completed call as stored in the ``calls`` collection."""

    call_id: str
    run_id: Optional[str] = None
    mc_number: Optional[str] = None
    carrier: Optional[str] = None
    load_id: Optional[str] = None
    final_price: Optional[float] = None
    outcome: Optional[str] = None  # BOOKED, NOT_INTERESTED, TRANSFERRED, NO_MATCH, ERROR, ...
    outcome_reason: Optional[str] = None
    sentiment: Optional[str] = None  # POSITIVE, NEUTRAL, NEGATIVE
    sentiment_score: Optional[float] = None  # Only set when we scored it ourselves
    negotiation_rounds: Optional[int] = None
    duration: Optional[float] = None
    transcript: Optional[str] = None
    call_end: Optional[datetime] = None
    created_at: datetime


class WebhookSummary(BaseModel):
    outcome: Optional[str] = None
    outcome_reason: Optional[str] = None
    sentiment: Optional[str] = None
    negotiation_rounds: Optional[int] = None
    final_price: Optional[float] = None


class WebhookResponse(BaseModel):
    call_id: str
    data: WebhookSummary


class CallListResponse(BaseModel):
    count: int
    calls: list[CallRecord]


def summarize(record: CallRecord) -> dict[str, Any]:
    return WebhookSummary(**record.model_dump()).model_dump()
