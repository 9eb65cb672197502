"""FastAPI dependencies: API key check and the collaborators route handlers use.

Stores and clients are built per request from the connected database handle
(or a fresh HTTP client), so tests can swap any of them through
``app.dependency_overrides``.
"""

import hmac
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends, Header, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.calls.store import CallStore
from app.carriers.fmcsa import FMCSAClient
from app.config import settings
from app.dashboard.service import DashboardService
from app.database import get_database
from app.events.store import CallEventStore
from app.loads.service import LoadCatalog
from app.negotiations.store import NegotiationStore


async def verify_api_key(x_api_key: Optional[str] = Header(None)) -> str:
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="API key is required. Include the X-API-Key header.",
        )
    if not hmac.compare_digest(x_api_key.encode(), settings.API_KEY.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key


def get_db() -> AsyncIOMotorDatabase:
    return get_database()


def get_negotiation_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> NegotiationStore:
    return NegotiationStore(db)


def get_event_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> CallEventStore:
    return CallEventStore(db)


def get_call_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> CallStore:
    return CallStore(db)


def get_load_catalog(db: AsyncIOMotorDatabase = Depends(get_db)) -> LoadCatalog:
    return LoadCatalog(db)


def get_dashboard_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


async def get_fmcsa_client() -> AsyncIterator[FMCSAClient]:
    async with httpx.AsyncClient(timeout=settings.FMCSA_TIMEOUT_SECONDS) as http_client:
        yield FMCSAClient(
            http_client,
            web_key=settings.FMCSA_API_KEY,
            base_url=settings.FMCSA_BASE_URL,
        )
