from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.carriers.fmcsa import FMCSAClient
from app.carriers.models import CarrierVerification
from app.dependencies import get_event_store, get_fmcsa_client, verify_api_key
from app.errors import NotFound
from app.events.models import CARRIER_VERIFIED
from app.events.store import CallEventStore, append_event

router = APIRouter(prefix="/api/carriers", tags=["carriers"], dependencies=[Depends(verify_api_key)])


@router.post("/verify/{mc_number}", response_model=CarrierVerification)
async def verify(
    mc_number: str,
    run_id: Optional[str] = Query(None),  # Voice platform run id, logs a CARRIER_VERIFIED event
    fmcsa: FMCSAClient = Depends(get_fmcsa_client),
    events: CallEventStore = Depends(get_event_store),
):
    """Check a carrier's MC number against the FMCSA registry.

    The voice AI calls this first on every inbound call and only moves on to
    load search when is_eligible is true.
    """
    carrier = await fmcsa.verify_carrier(mc_number)
    if carrier is None:
        raise NotFound(f"Carrier not found for MC number {mc_number}")

    if run_id:
        await append_event(
            events,
            run_id,
            CARRIER_VERIFIED,
            {
                "mc_number": carrier.mc_number,
                "legal_name": carrier.legal_name,
                "is_eligible": carrier.is_eligible,
            },
        )
    return carrier
