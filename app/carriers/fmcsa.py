"""Client for the FMCSA QCMobile carrier registry.

Looks carriers up by MC docket number:
    GET {base_url}/docket-number/{mc}?webKey=...

The registry wraps the carrier block differently depending on the endpoint
and version, so parse_carrier() checks every shape we have seen.
"""

import logging
import re
from typing import Any, Optional

import httpx

from app.carriers.models import CarrierVerification
from app.errors import InvalidArgument, RegistryUnavailable

logger = logging.getLogger(__name__)


def normalize_mc_number(mc_number: str) -> str:
    """Strip everything but digits ("MC-123456" -> "123456")."""
    digits = re.sub(r"\D", "", str(mc_number))
    if not digits:
        raise InvalidArgument(f"MC number {mc_number!r} contains no digits")
    return digits


def extract_carrier(payload: Any) -> Optional[dict]:
    """Locate the carrier block inside a QCMobile response, or None."""
    if not isinstance(payload, dict):
        return None
    content = payload.get("content")

    # content: [{"carrier": {...}}]  (docket-number endpoint)
    if isinstance(content, list):
        if content and isinstance(content[0], dict) and isinstance(content[0].get("carrier"), dict):
            return content[0]["carrier"] or None
        return None
    if not isinstance(content, dict):
        return None
    # content: {"carrier": {...}}  (dot-number endpoint)
    if isinstance(content.get("carrier"), dict) and content["carrier"]:
        return content["carrier"]
    # content: {"carriers": [{...}]}
    carriers = content.get("carriers")
    if isinstance(carriers, list) and carriers and isinstance(carriers[0], dict):
        return carriers[0]
    # content: {"searchResults": [{"carrier": {...}}]}
    results = content.get("searchResults")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        carrier = results[0].get("carrier")
        return carrier if isinstance(carrier, dict) and carrier else None
    return None


def _format_address(carrier: dict) -> Optional[str]:
    street = carrier.get("phyStreet")
    if not street:
        return None
    city = carrier.get("phyCity") or ""
    state = carrier.get("phyState") or ""
    zipcode = carrier.get("phyZipcode") or ""
    return f"{street}, {city}, {state} {zipcode}".strip()


def parse_carrier(mc_number: str, carrier: dict) -> CarrierVerification:
    allowed_to_operate = carrier.get("allowedToOperate") == "Y"
    out_of_service_date = carrier.get("oosDate") or carrier.get("outOfServiceDate")
    operation = carrier.get("carrierOperation") or {}

    return CarrierVerification(
        mc_number=mc_number,
        legal_name=carrier.get("legalName") or "Unknown",
        dba_name=carrier.get("dbaName") or None,
        status=operation.get("carrierOperationCode") or carrier.get("statusCode") or "UNKNOWN",
        is_eligible=allowed_to_operate and not out_of_service_date,
        allowed_to_operate=allowed_to_operate,
        out_of_service_date=out_of_service_date or None,
        physical_address=_format_address(carrier),
        phone_number=carrier.get("telephone") or None,
    )


class FMCSAClient:
    def __init__(self, http_client: httpx.AsyncClient, web_key: str, base_url: str):
        self.http_client = http_client
        self.web_key = web_key
        self.base_url = base_url.rstrip("/")

    async def verify_carrier(self, mc_number: str) -> Optional[CarrierVerification]:
        """Look a carrier up by MC number.

        Returns None when the registry has no such carrier. Raises
        RegistryUnavailable when the registry can't be reached, refuses the
        web key, or answers with anything but JSON.
        """
        mc_number = normalize_mc_number(mc_number)
        url = f"{self.base_url}/docket-number/{mc_number}"
        logger.info("Verifying MC number %s with FMCSA", mc_number)

        try:
            response = await self.http_client.get(
                url,
                params={"webKey": self.web_key},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.exception("FMCSA request failed for MC %s", mc_number)
            raise RegistryUnavailable("FMCSA registry is unreachable") from exc

        if response.status_code == 404:
            logger.info("Carrier not found: MC %s", mc_number)
            return None
        if response.status_code >= 400:
            # 401/403 usually mean a missing or revoked web key
            logger.error("FMCSA answered %s for MC %s", response.status_code, mc_number)
            raise RegistryUnavailable(f"FMCSA registry answered with status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("FMCSA returned a non-JSON body for MC %s", mc_number)
            raise RegistryUnavailable("FMCSA registry returned an unreadable response") from exc

        carrier = extract_carrier(payload)
        if carrier is None:
            logger.info("Carrier not found: MC %s", mc_number)
            return None

        result = parse_carrier(mc_number, carrier)
        logger.info(
            "Carrier verified: %s (%s)",
            result.legal_name,
            "eligible" if result.is_eligible else "not eligible",
        )
        if not result.allowed_to_operate:
            logger.warning("MC %s is not authorized to operate", mc_number)
        if result.out_of_service_date:
            logger.warning("MC %s out of service since %s", mc_number, result.out_of_service_date)
        return result
