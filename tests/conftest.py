from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.dependencies import get_event_store, get_negotiation_store
from app.errors import StorageUnavailable
from app.main import app


class InMemoryNegotiationStore:
    """Stand-in for NegotiationStore keeping rounds in insertion order."""

    def __init__(self):
        self.rounds = []
        self.fail_appends = False

    async def append(self, negotiation_round):
        if self.fail_appends:
            raise StorageUnavailable("Could not save negotiation round")
        self.rounds.append(negotiation_round)
        return negotiation_round.negotiation_id

    async def list_by_session(self, session_ref):
        matching = [r for r in self.rounds if r.session_ref == session_ref]
        return sorted(matching, key=lambda r: r.round)

    async def list_by_load(self, load_id):
        return [r for r in reversed(self.rounds) if r.load_id == load_id]

    async def latest_for(self, load_id, session_ref):
        for r in reversed(self.rounds):
            if r.load_id == load_id and r.session_ref == session_ref:
                return r
        return None


class InMemoryEventStore:
    def __init__(self):
        self.events = []
        self.fail_appends = False

    async def append(self, run_id, event_type, data=None):
        if self.fail_appends:
            raise StorageUnavailable("Could not record call event")
        self.events.append({"run_id": run_id, "event_type": event_type, "data": data or {}})
        return f"evt-{len(self.events)}"

    async def list_recent(self, limit=50, run_id=None):
        raise NotImplementedError


def make_cursor(docs):
    """Mock of a motor cursor: find(...).sort(...).to_list(...) -> docs."""
    cursor = MagicMock()
    cursor.sort = MagicMock(return_value=cursor)
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def api_key():
    return settings.API_KEY


@pytest.fixture
def negotiation_store():
    return InMemoryNegotiationStore()


@pytest.fixture
def event_store():
    return InMemoryEventStore()


@pytest.fixture
def cursor_factory():
    return make_cursor


@pytest.fixture
async def negotiation_client(api_key, negotiation_store, event_store):
    """HTTP client whose negotiation routes use the in-memory stores."""
    app.dependency_overrides[get_negotiation_store] = lambda: negotiation_store
    app.dependency_overrides[get_event_store] = lambda: event_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers["X-API-Key"] = api_key
        yield ac
    app.dependency_overrides.clear()
