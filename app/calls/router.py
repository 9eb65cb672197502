from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from app.calls.models import CallListResponse, CallRecord, HappyRobotWebhook, WebhookResponse, summarize
from app.calls.service import record_call
from app.calls.store import CallStore
from app.dependencies import get_call_store, get_event_store, verify_api_key
from app.errors import NotFound
from app.events.store import CallEventStore

router = APIRouter(
    prefix="/api/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("/happyrobot", response_model=WebhookResponse, status_code=HTTP_201_CREATED)
async def happyrobot_webhook(
    payload: HappyRobotWebhook,
    calls: CallStore = Depends(get_call_store),
    events: CallEventStore = Depends(get_event_store),
):
    """Record a completed call posted by the voice AI platform."""
    record = await record_call(payload, calls, events)
    return WebhookResponse(call_id=record.call_id, data=summarize(record))


@router.get("/calls", response_model=CallListResponse)
async def list_calls(calls: CallStore = Depends(get_call_store)):
    """The 100 most recent calls, newest first."""
    records = await calls.list_recent()
    return CallListResponse(count=len(records), calls=records)


@router.get("/calls/{call_id}", response_model=CallRecord)
async def get_call(call_id: str, calls: CallStore = Depends(get_call_store)):
    record = await calls.get(call_id)
    if not record:
        raise NotFound(f"Call {call_id} not found")
    return record
