from datetime import datetime

from pydantic import BaseModel


class Load(BaseModel):
    """A shipment a carrier can search for and negotiate on.

    Both the database document shape and the API response shape.
    """

    load_id: str  # Unique identifier, e.g. "LD-001"
    origin: str  # Pickup city and state, e.g. "Denver, CO"
    destination: str  # Delivery city and state, e.g. "Chicago, IL"
    pickup_datetime: datetime
    delivery_datetime: datetime
    equipment_type: str  # "Dry Van", "Reefer", "Flatbed", ...
    loadboard_rate: float  # Posted price in USD; the asking rate in negotiations
    status: str = "available"  # "available" or "booked"
    notes: str = ""
    weight: float  # Pounds
    commodity_type: str
    num_of_pieces: int
    miles: float
    dimensions: str  # "LxWxH" in inches


class LoadResponse(BaseModel):
    """Search results returned to the voice AI."""

    loads: list[Load]
    total: int
