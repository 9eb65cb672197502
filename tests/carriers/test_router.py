import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.carriers.fmcsa import FMCSAClient
from app.dependencies import get_event_store, get_fmcsa_client
from app.main import app

pytestmark = pytest.mark.asyncio

CARRIER = {
    "legalName": "BLUE RIDGE FREIGHT LLC",
    "allowedToOperate": "Y",
    "statusCode": "A",
    "telephone": "(828) 555-0199",
}


@pytest.fixture
def registry():
    """Responses served by the fake FMCSA registry, keyed by MC number."""
    return {"123456": {"content": [{"carrier": CARRIER}]}}


@pytest.fixture
async def client(api_key, registry, event_store):
    def handler(request):
        mc_number = request.url.path.rsplit("/", 1)[-1]
        if mc_number == "500500":
            return httpx.Response(503, text="unavailable")
        if mc_number not in registry:
            return httpx.Response(404, json={})
        return httpx.Response(200, json=registry[mc_number])

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_fmcsa_client] = lambda: FMCSAClient(
        http_client, web_key="k", base_url="https://registry.test/carriers"
    )
    app.dependency_overrides[get_event_store] = lambda: event_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        ac.headers["X-API-Key"] = api_key
        yield ac
    app.dependency_overrides.clear()
    await http_client.aclose()


async def test_verify_known_carrier(client, event_store):
    response = await client.post("/api/carriers/verify/123456")
    assert response.status_code == 200
    data = response.json()
    assert data["legal_name"] == "BLUE RIDGE FREIGHT LLC"
    assert data["is_eligible"] is True
    assert data["status"] == "A"
    assert event_store.events == []


async def test_verify_logs_event_for_run(client, event_store):
    response = await client.post("/api/carriers/verify/MC123456", params={"run_id": "run-9"})
    assert response.status_code == 200
    [event] = event_store.events
    assert event["run_id"] == "run-9"
    assert event["event_type"] == "CARRIER_VERIFIED"
    assert event["data"]["is_eligible"] is True


async def test_verify_succeeds_when_event_log_fails(client, event_store):
    event_store.fail_appends = True
    response = await client.post("/api/carriers/verify/123456", params={"run_id": "run-9"})
    assert response.status_code == 200
    assert response.json()["is_eligible"] is True


async def test_verify_unknown_carrier_is_404(client):
    response = await client.post("/api/carriers/verify/999999")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


async def test_verify_without_digits_is_400(client):
    response = await client.post("/api/carriers/verify/MC-ABC")
    assert response.status_code == 400


async def test_registry_outage_is_502(client):
    response = await client.post("/api/carriers/verify/500500")
    assert response.status_code == 502
    assert response.json()["error"] == "registry_unavailable"


async def test_verify_requires_api_key():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.post("/api/carriers/verify/123456")
    assert response.status_code == 401
