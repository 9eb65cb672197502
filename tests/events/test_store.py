from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import NetworkTimeout

from app.errors import StorageUnavailable
from app.events.store import CallEventStore, append_event

pytestmark = pytest.mark.asyncio


def _make_store():
    mock_db = MagicMock()
    mock_db.call_events.insert_one = AsyncMock()
    return CallEventStore(mock_db), mock_db.call_events


async def test_append_writes_event_document():
    store, collection = _make_store()

    event_id = await store.append("run-7", "NEGOTIATION_ROUND", {"round": 2})

    doc = collection.insert_one.call_args.args[0]
    assert doc["event_id"] == event_id
    assert doc["run_id"] == "run-7"
    assert doc["event_type"] == "NEGOTIATION_ROUND"
    assert doc["data"] == {"round": 2}
    assert doc["timestamp"].tzinfo is None


async def test_append_defaults_to_empty_data():
    store, collection = _make_store()
    await store.append("run-7", "CALL_ENDED")
    assert collection.insert_one.call_args.args[0]["data"] == {}


async def test_append_failure_is_storage_unavailable():
    store, collection = _make_store()
    collection.insert_one.side_effect = NetworkTimeout("timed out")
    with pytest.raises(StorageUnavailable):
        await store.append("run-7", "CALL_ENDED")


async def test_append_event_returns_id_on_success():
    store, collection = _make_store()
    event_id = await append_event(store, "run-7", "LOAD_ACCEPTED", {"load_id": "LD-001"})
    assert collection.insert_one.call_args.args[0]["event_id"] == event_id


async def test_append_event_swallows_storage_failure():
    store, collection = _make_store()
    collection.insert_one.side_effect = NetworkTimeout("timed out")
    assert await append_event(store, "run-7", "LOAD_ACCEPTED") is None
