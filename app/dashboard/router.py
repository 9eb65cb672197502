from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.dashboard.models import ActivityResponse, MetricsResponse, SessionsResponse
from app.dashboard.service import DashboardService
from app.dependencies import get_dashboard_service, get_event_store, verify_api_key
from app.events.store import CallEventStore

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(verify_api_key)],
)


@router.get("/activity", response_model=ActivityResponse)
async def activity(
    limit: int = Query(50, ge=1, le=500),
    run_id: Optional[str] = Query(None),
    events: CallEventStore = Depends(get_event_store),
):
    """Recent call events, newest first, for the live activity feed."""
    activities = await events.list_recent(limit=limit, run_id=run_id)
    return ActivityResponse(count=len(activities), activities=activities)


@router.get("/metrics", response_model=MetricsResponse)
async def metrics(service: DashboardService = Depends(get_dashboard_service)):
    """Call totals, booking rate, averages and breakdowns by outcome and sentiment."""
    return await service.get_metrics()


@router.get("/sessions", response_model=SessionsResponse)
async def sessions(service: DashboardService = Depends(get_dashboard_service)):
    """Up to 50 runs with their latest activity and whether the call has ended."""
    summaries = await service.get_sessions()
    return SessionsResponse(count=len(summaries), sessions=summaries)
