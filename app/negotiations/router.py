from fastapi import APIRouter, Depends

from app.dependencies import get_event_store, get_negotiation_store, verify_api_key
from app.events.store import CallEventStore
from app.negotiations.models import (
    AcceptLoadRequest,
    NegotiationHistoryResponse,
    NegotiationRequest,
    NegotiationResponse,
    NegotiationRound,
)
from app.negotiations.service import (
    accept_load,
    evaluate_offer,
    get_load_history,
    get_session_history,
)
from app.negotiations.store import NegotiationStore

# All routes under /api/negotiation require a valid API key in the X-API-Key header.
router = APIRouter(
    prefix="/api/negotiation",
    tags=["negotiation"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("/evaluate", response_model=NegotiationResponse)
async def evaluate(
    request: NegotiationRequest,
    store: NegotiationStore = Depends(get_negotiation_store),
    events: CallEventStore = Depends(get_event_store),
):
    """Decide whether to accept, counter or transfer a carrier's offer.

    Called by the voice AI every time the carrier names a price. The round
    is persisted before the answer is returned.
    """
    return await evaluate_offer(request, store, events)


@router.post("/accept-load", response_model=NegotiationRound)
async def accept(
    request: AcceptLoadRequest,
    store: NegotiationStore = Depends(get_negotiation_store),
    events: CallEventStore = Depends(get_event_store),
):
    """Record the carrier taking either the posted rate or our last counter-offer."""
    return await accept_load(request, store, events)


@router.get("/history/{session_ref}", response_model=NegotiationHistoryResponse)
async def session_history(
    session_ref: str,
    store: NegotiationStore = Depends(get_negotiation_store),
):
    """All rounds of one call, in round order."""
    rounds = await get_session_history(session_ref, store)
    return NegotiationHistoryResponse(session_ref=session_ref, count=len(rounds), negotiations=rounds)


@router.get("/load/{load_id}", response_model=NegotiationHistoryResponse)
async def load_history(
    load_id: str,
    store: NegotiationStore = Depends(get_negotiation_store),
):
    """All rounds negotiated on a load across calls, most recent first."""
    rounds = await get_load_history(load_id, store)
    return NegotiationHistoryResponse(load_id=load_id, count=len(rounds), negotiations=rounds)
