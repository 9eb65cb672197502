import httpx
import pytest

from app.carriers.fmcsa import FMCSAClient, extract_carrier, normalize_mc_number
from app.errors import InvalidArgument, RegistryUnavailable

BASE_URL = "https://registry.test/qc/services/carriers"

ACTIVE_CARRIER = {
    "legalName": "TYROLER METALS INC",
    "dbaName": "",
    "allowedToOperate": "Y",
    "oosDate": None,
    "carrierOperation": {"carrierOperationCode": "A"},
    "phyStreet": "100 MAIN ST",
    "phyCity": "CHICAGO",
    "phyState": "IL",
    "phyZipcode": "60601",
    "telephone": "(312) 555-0100",
}


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FMCSAClient(http_client, web_key="secret-key", base_url=BASE_URL)


def _json_handler(payload, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


async def test_active_carrier_is_eligible():
    seen = []
    client = _client(_json_handler({"content": [{"carrier": ACTIVE_CARRIER}]}, seen=seen))

    result = await client.verify_carrier("MC-123456")

    assert result.mc_number == "123456"
    assert result.legal_name == "TYROLER METALS INC"
    assert result.dba_name is None
    assert result.status == "A"
    assert result.is_eligible is True
    assert result.physical_address == "100 MAIN ST, CHICAGO, IL 60601"
    assert result.phone_number == "(312) 555-0100"

    [request] = seen
    assert request.url.path == "/qc/services/carriers/docket-number/123456"
    assert request.url.params["webKey"] == "secret-key"


async def test_not_authorized_carrier_is_not_eligible():
    carrier = {**ACTIVE_CARRIER, "allowedToOperate": "N"}
    client = _client(_json_handler({"content": [{"carrier": carrier}]}))
    result = await client.verify_carrier("123456")
    assert result.is_eligible is False
    assert result.allowed_to_operate is False


async def test_out_of_service_carrier_is_not_eligible():
    carrier = {**ACTIVE_CARRIER, "oosDate": "2024-03-01"}
    client = _client(_json_handler({"content": [{"carrier": carrier}]}))
    result = await client.verify_carrier("123456")
    assert result.is_eligible is False
    assert result.out_of_service_date == "2024-03-01"


async def test_empty_content_means_not_found():
    client = _client(_json_handler({"content": []}))
    assert await client.verify_carrier("999999") is None


async def test_404_means_not_found():
    client = _client(_json_handler({}, status_code=404))
    assert await client.verify_carrier("999999") is None


async def test_forbidden_is_registry_unavailable():
    client = _client(_json_handler({"error": "bad key"}, status_code=403))
    with pytest.raises(RegistryUnavailable):
        await client.verify_carrier("123456")


async def test_network_error_is_registry_unavailable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(RegistryUnavailable):
        await _client(handler).verify_carrier("123456")


async def test_non_json_body_is_registry_unavailable():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(RegistryUnavailable):
        await client.verify_carrier("123456")


async def test_mc_number_without_digits_is_invalid():
    with pytest.raises(InvalidArgument):
        await _client(_json_handler({})).verify_carrier("MC-")


def test_normalize_mc_number():
    assert normalize_mc_number("MC 01234") == "01234"
    assert normalize_mc_number(123456) == "123456"


@pytest.mark.parametrize(
    "payload",
    [
        {"content": [{"carrier": ACTIVE_CARRIER}]},
        {"content": {"carrier": ACTIVE_CARRIER}},
        {"content": {"carriers": [ACTIVE_CARRIER]}},
        {"content": {"searchResults": [{"carrier": ACTIVE_CARRIER}]}},
    ],
)
def test_extract_carrier_handles_every_wrapper(payload):
    assert extract_carrier(payload) == ACTIVE_CARRIER


@pytest.mark.parametrize("payload", [None, [], {}, {"content": None}, {"content": [{}]}, {"content": {}}])
def test_extract_carrier_returns_none_when_absent(payload):
    assert extract_carrier(payload) is None


@pytest.mark.parametrize(
    "payload",
    [
        {"content": ["MC-123"]},
        {"content": [{"carrier": "MC-123"}]},
        {"content": {"carrier": "MC-123"}},
        {"content": {"carriers": ["MC-123"]}},
        {"content": {"carriers": "MC-123"}},
        {"content": {"searchResults": ["MC-123"]}},
        {"content": {"searchResults": [{"carrier": ["MC-123"]}]}},
    ],
)
def test_extract_carrier_ignores_malformed_entries(payload):
    assert extract_carrier(payload) is None


async def test_malformed_registry_body_means_not_found():
    client = _client(_json_handler({"content": {"carriers": ["MC-123"]}}))
    assert await client.verify_carrier("123456") is None
