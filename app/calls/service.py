import logging
from datetime import UTC, datetime
from uuid import uuid4

from app.calls.classification import analyze_sentiment, classify_outcome
from app.calls.models import CallRecord, HappyRobotWebhook
from app.calls.store import CallStore
from app.events.models import CALL_ENDED
from app.events.store import CallEventStore, append_event

logger = logging.getLogger(__name__)


def build_call_record(payload: HappyRobotWebhook) -> CallRecord:
    """Map a webhook payload onto a call record.

    The platform's own outcome and sentiment win. When either is missing we
    fill it from the rule-based classifiers, outcome first since the
    sentiment score leans on it.
    """
    outcome = payload.outcome
    outcome_reason = payload.outcome_reason
    if not outcome:
        classification = classify_outcome(
            transcript=payload.transcript,
            load_id=payload.load_id,
            final_price=payload.final_price,
            mc_number=payload.mc_number,
            duration=payload.duration,
        )
        outcome = classification.outcome
        outcome_reason = outcome_reason or classification.outcome_reason
        logger.info("Classified call outcome as %s (confidence %.2f)", outcome, classification.confidence)

    sentiment = payload.sentiment
    sentiment_score = None
    if not sentiment:
        analysis = analyze_sentiment(transcript=payload.transcript, outcome=outcome, duration=payload.duration)
        sentiment = analysis.sentiment
        sentiment_score = analysis.sentiment_score
        logger.info("Scored carrier sentiment %s (%.2f): %s", sentiment, sentiment_score, ", ".join(analysis.indicators))

    return CallRecord(
        call_id=uuid4().hex,
        run_id=payload.run_id,
        mc_number=payload.mc_number,
        carrier=payload.carrier,
        load_id=payload.load_id,
        final_price=payload.final_price,
        outcome=outcome,
        outcome_reason=outcome_reason,
        sentiment=sentiment,
        sentiment_score=sentiment_score,
        negotiation_rounds=payload.negotiation_rounds,
        duration=payload.duration,
        transcript=payload.transcript,
        call_end=payload.call_end,
        created_at=datetime.now(UTC).replace(tzinfo=None),
    )


async def record_call(payload: HappyRobotWebhook, calls: CallStore, events: CallEventStore) -> CallRecord:
    """Store the completed call and close its run in the event log."""
    logger.info(
        "Webhook received: run=%s mc=%s load=%s outcome=%s",
        payload.run_id,
        payload.mc_number,
        payload.load_id,
        payload.outcome,
    )
    record = build_call_record(payload)
    await calls.insert(record)

    if payload.run_id:
        await append_event(
            events,
            payload.run_id,
            CALL_ENDED,
            {
                "call_id": record.call_id,
                "mc_number": record.mc_number,
                "carrier": record.carrier,
                "load_id": record.load_id,
                "final_price": record.final_price,
                "outcome": record.outcome,
                "outcome_reason": record.outcome_reason,
                "sentiment": record.sentiment,
                "negotiation_rounds": record.negotiation_rounds,
                "duration": record.duration,
                "call_end": record.call_end.isoformat() if record.call_end else None,
            },
        )
    return record
