from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field

NegotiationAction = Literal["ACCEPT", "COUNTER", "TRANSFER"]


def _whole_float_to_int(v):
    """JSON numbers like 2.0 arrive as floats; keep only whole ones as ints."""
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


# Strict int >= 1 that also takes whole-valued floats. Strings, bools and 1.5 still fail.
RoundNumber = Annotated[int, Field(ge=1, strict=True), BeforeValidator(_whole_float_to_int)]


class NegotiationRequest(BaseModel):
    """Request body for evaluating a carrier's price offer.

    Sent by the voice AI each time a carrier names a price for a load.
    Rates and round are strict: a numeric string like "1200" is rejected
    instead of being coerced, and so is a fractional round. A whole float
    round such as 2.0 is taken as 2.
    """

    load_id: str = Field(..., min_length=1)  # The load being negotiated, e.g. "LD-001"
    loadboard_rate: float = Field(..., gt=0, strict=True)  # Posted price in USD
    carrier_offer: float = Field(..., gt=0, strict=True)  # What the carrier wants in USD
    round: RoundNumber = Field(...)  # 1-based, tracked by the voice agent
    session_ref: Optional[str] = None  # Call/run id correlating rounds of one call


class NegotiationResponse(BaseModel):
    """What the voice AI should do next with the carrier's offer."""

    action: NegotiationAction
    counter_offer: Optional[float] = None  # Only set when action == "COUNTER"
    reason: str
    negotiation_id: str  # Id of the persisted round


class AcceptLoadRequest(BaseModel):
    """Record a load as accepted without running the evaluator.

    Either the carrier takes the posted rate on first contact, or they take
    the counter-offer we made in the previous round.
    """

    load_id: str = Field(..., min_length=1)
    loadboard_rate: float = Field(..., gt=0, strict=True)
    session_ref: Optional[str] = None


class NegotiationRound(BaseModel):
    """One persisted offer/response cycle. Never updated after it is appended."""

    negotiation_id: str
    session_ref: Optional[str] = None
    load_id: str
    round: int = Field(..., ge=0)  # 0 means accepted without negotiation
    loadboard_rate: float
    carrier_offer: float
    action: NegotiationAction
    counter_offer: Optional[float] = None
    reason: str
    created_at: datetime


class NegotiationHistoryResponse(BaseModel):
    session_ref: Optional[str] = None
    load_id: Optional[str] = None
    count: int
    negotiations: list[NegotiationRound]
