import logging
from datetime import UTC, datetime
from typing import Optional
from uuid import uuid4

from app.errors import NotFound
from app.events.models import LOAD_ACCEPTED, NEGOTIATION_ROUND
from app.events.store import CallEventStore, append_event
from app.negotiations import engine
from app.negotiations.models import (
    AcceptLoadRequest,
    NegotiationAction,
    NegotiationRequest,
    NegotiationResponse,
    NegotiationRound,
)
from app.negotiations.store import KeyedLock, NegotiationStore

logger = logging.getLogger(__name__)

# Shared by every request in this process so concurrent accepts for the same
# (session, load) pair cannot both read the same "latest" round.
accept_locks = KeyedLock()


def _build_round(
    *,
    load_id: str,
    loadboard_rate: float,
    carrier_offer: float,
    round_number: int,
    action: NegotiationAction,
    reason: str,
    counter_offer: Optional[float] = None,
    session_ref: Optional[str] = None,
) -> NegotiationRound:
    return NegotiationRound(
        negotiation_id=uuid4().hex,
        session_ref=session_ref,
        load_id=load_id,
        round=round_number,
        loadboard_rate=loadboard_rate,
        carrier_offer=carrier_offer,
        action=action,
        counter_offer=counter_offer,
        reason=reason,
        # Naive UTC, consistent with how the other collections store times
        created_at=datetime.now(UTC).replace(tzinfo=None),
    )


async def evaluate_offer(
    request: NegotiationRequest,
    store: NegotiationStore,
    events: CallEventStore,
) -> NegotiationResponse:
    """Run the evaluator on a carrier offer and record the round.

    Flow:
    1. evaluate the offer (pure, raises InvalidArgument on bad input)
    2. append the round; a storage failure aborts the request, so every
       decision handed back to the voice agent has a persisted negotiation_id
    3. log a NEGOTIATION_ROUND event when the call has a session_ref; a failed
       event write is logged and the decision is still returned
    """
    decision = engine.evaluate(request.loadboard_rate, request.carrier_offer, request.round)
    counter_offer = getattr(decision, "counter_offer", None)

    logger.info(
        "Evaluated offer for %s: rate=%.2f offer=%.2f round=%d -> %s%s",
        request.load_id,
        request.loadboard_rate,
        request.carrier_offer,
        request.round,
        decision.action,
        f" ({counter_offer})" if counter_offer is not None else "",
    )

    negotiation_round = _build_round(
        load_id=request.load_id,
        loadboard_rate=request.loadboard_rate,
        carrier_offer=request.carrier_offer,
        round_number=request.round,
        action=decision.action,
        reason=decision.reason,
        counter_offer=counter_offer,
        session_ref=request.session_ref,
    )
    negotiation_id = await store.append(negotiation_round)

    if request.session_ref:
        await append_event(
            events,
            request.session_ref,
            NEGOTIATION_ROUND,
            {
                "negotiation_id": negotiation_id,
                "load_id": request.load_id,
                "round": request.round,
                "carrier_offer": request.carrier_offer,
                "action": decision.action,
                "counter_offer": counter_offer,
            },
        )

    return NegotiationResponse(
        action=decision.action,
        counter_offer=counter_offer,
        reason=decision.reason,
        negotiation_id=negotiation_id,
    )


async def accept_load(
    request: AcceptLoadRequest,
    store: NegotiationStore,
    events: CallEventStore,
) -> NegotiationRound:
    """Record a load as accepted without re-running the evaluator.

    - Previous round was a COUNTER: the carrier took our counter-offer, so the
      new round is prior.round + 1 at the counter_offer price.
    - Anything else (no history, or the last round was not a counter): the
      carrier took the posted rate on first contact, recorded as round 0.

    The lookup and the append run under a per-(session, load) lock.
    """
    async with accept_locks.hold((request.session_ref, request.load_id)):
        prior = await store.latest_for(request.load_id, request.session_ref)

        if prior is not None and prior.action == "COUNTER" and prior.counter_offer is not None:
            negotiation_round = _build_round(
                load_id=request.load_id,
                loadboard_rate=request.loadboard_rate,
                carrier_offer=prior.counter_offer,
                round_number=prior.round + 1,
                action="ACCEPT",
                reason=(
                    f"Carrier accepted our counter-offer of ${prior.counter_offer:,.2f} "
                    f"from round {prior.round}."
                ),
                session_ref=request.session_ref,
            )
        else:
            negotiation_round = _build_round(
                load_id=request.load_id,
                loadboard_rate=request.loadboard_rate,
                carrier_offer=request.loadboard_rate,
                round_number=0,
                action="ACCEPT",
                reason=(
                    f"Carrier accepted the loadboard rate ${request.loadboard_rate:,.2f} "
                    "without negotiation."
                ),
                session_ref=request.session_ref,
            )

        await store.append(negotiation_round)

    if request.session_ref:
        await append_event(
            events,
            request.session_ref,
            LOAD_ACCEPTED,
            {
                "negotiation_id": negotiation_round.negotiation_id,
                "load_id": request.load_id,
                "round": negotiation_round.round,
                "agreed_rate": negotiation_round.carrier_offer,
            },
        )

    return negotiation_round


async def get_session_history(session_ref: str, store: NegotiationStore) -> list[NegotiationRound]:
    rounds = await store.list_by_session(session_ref)
    logger.info("Found %d negotiation rounds for session %s", len(rounds), session_ref)
    if not rounds:
        raise NotFound(f"No negotiation history for session {session_ref}")
    return rounds


async def get_load_history(load_id: str, store: NegotiationStore) -> list[NegotiationRound]:
    rounds = await store.list_by_load(load_id)
    logger.info("Found %d negotiation rounds for load %s", len(rounds), load_id)
    if not rounds:
        raise NotFound(f"No negotiations recorded for load {load_id}")
    return rounds
