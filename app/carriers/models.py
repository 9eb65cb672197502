from typing import Optional

from pydantic import BaseModel


class CarrierVerification(BaseModel):
    """Eligibility of a carrier according to the FMCSA registry.

    A carrier is eligible when it is allowed to operate and has no
    out-of-service date on record.
    """

    mc_number: str  # Digits only, e.g. "123456"
    legal_name: str
    dba_name: Optional[str] = None
    status: str  # Carrier operation code or status code, "UNKNOWN" if absent
    is_eligible: bool
    allowed_to_operate: bool
    out_of_service_date: Optional[str] = None
    physical_address: Optional[str] = None
    phone_number: Optional[str] = None
