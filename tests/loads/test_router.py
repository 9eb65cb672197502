from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from pymongo.errors import AutoReconnect

from app.main import app

pytestmark = pytest.mark.asyncio

SAMPLE_LOAD = {
    "load_id": "LD-001",
    "origin": "Dallas, TX",
    "destination": "Miami, FL",
    "pickup_datetime": "2027-06-15T08:00:00",
    "delivery_datetime": "2027-06-17T14:00:00",
    "equipment_type": "Dry Van",
    "loadboard_rate": 2800,
    "status": "available",
    "notes": "Fragile electronics, secure stacking required",
    "weight": 18000,
    "commodity_type": "Electronics",
    "num_of_pieces": 45,
    "miles": 1320,
    "dimensions": "48x40x60",
}


def _make_mock_db(loads_data, find_one_result):
    mock_cursor = MagicMock()
    mock_cursor.sort = MagicMock(return_value=mock_cursor)
    mock_cursor.to_list = AsyncMock(return_value=loads_data)

    mock_collection = MagicMock()
    mock_collection.find = MagicMock(return_value=mock_cursor)
    mock_collection.find_one = AsyncMock(return_value=find_one_result)

    mock_db = MagicMock()
    mock_db.loads = mock_collection
    return mock_db


@pytest.fixture
def mock_db():
    return _make_mock_db([SAMPLE_LOAD], SAMPLE_LOAD)


@pytest.fixture
async def client(api_key, mock_db):
    with patch("app.dependencies.get_database", return_value=mock_db):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            ac.headers["X-API-Key"] = api_key
            yield ac


def _query(mock_db):
    return mock_db.loads.find.call_args.args[0]


async def test_search_returns_loads(client):
    response = await client.get("/api/loads/search", params={"origin": "Dallas"})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["loads"][0]["load_id"] == "LD-001"


async def test_search_requires_a_location_or_equipment_filter(client):
    response = await client.get("/api/loads/search", params={"min_rate": "1000"})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_argument"


async def test_search_treats_empty_strings_as_absent(client, mock_db):
    response = await client.get(
        "/api/loads/search",
        params={"origin": "Dallas", "destination": "", "min_rate": "", "max_weight": ""},
    )
    assert response.status_code == 200
    query = _query(mock_db)
    assert "destination" not in query
    assert "loadboard_rate" not in query
    assert "weight" not in query


async def test_search_only_available_loads_sorted_by_pickup(client, mock_db):
    await client.get("/api/loads/search", params={"equipment_type": "Reefer"})
    assert _query(mock_db)["status"] == "available"
    mock_db.loads.find.return_value.sort.assert_called_once_with("pickup_datetime", 1)


async def test_city_search_is_escaped_substring(client, mock_db):
    await client.get("/api/loads/search", params={"origin": "St. Louis"})
    assert _query(mock_db)["origin"] == {"$regex": r"St\.\ Louis", "$options": "i"}


async def test_state_abbreviation_anchors_to_state(client, mock_db):
    await client.get("/api/loads/search", params={"destination": "CA"})
    assert _query(mock_db)["destination"] == {"$regex": r",\s*CA$", "$options": "i"}


async def test_equipment_type_is_exact_match(client, mock_db):
    await client.get("/api/loads/search", params={"equipment_type": "dry van"})
    assert _query(mock_db)["equipment_type"] == {"$regex": r"^dry\ van$", "$options": "i"}


async def test_rate_and_weight_filters(client, mock_db):
    await client.get(
        "/api/loads/search",
        params={"origin": "TX", "min_rate": "1500", "max_rate": "3000", "max_weight": "40000"},
    )
    query = _query(mock_db)
    assert query["loadboard_rate"] == {"$gte": 1500, "$lte": 3000}
    assert query["weight"] == {"$lte": 40000}


async def test_non_numeric_rate_is_400(client):
    response = await client.get("/api/loads/search", params={"origin": "TX", "min_rate": "cheap"})
    assert response.status_code == 400


async def test_get_load_by_id(client):
    response = await client.get("/api/loads/LD-001")
    assert response.status_code == 200
    assert response.json()["origin"] == "Dallas, TX"


async def test_get_load_not_found(api_key):
    mock_db = _make_mock_db([], None)
    with patch("app.dependencies.get_database", return_value=mock_db):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            ac.headers["X-API-Key"] = api_key
            response = await ac.get("/api/loads/LD-999")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


async def test_database_failure_is_500(client, mock_db):
    mock_db.loads.find_one.side_effect = AutoReconnect("connection reset")
    response = await client.get("/api/loads/LD-001")
    assert response.status_code == 500
    assert response.json()["error"] == "storage_unavailable"
    assert "connection reset" not in response.text


async def test_search_loads_requires_api_key():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/loads/search", params={"origin": "Dallas"})
    assert response.status_code == 401
