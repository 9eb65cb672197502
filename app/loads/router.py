from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BeforeValidator

from app.dependencies import get_load_catalog, verify_api_key
from app.errors import InvalidArgument, NotFound
from app.loads.models import Load, LoadResponse
from app.loads.service import LoadCatalog


def _empty_to_none(v):
    """Coerce empty strings to None so Pydantic doesn't choke on "" for floats."""
    if v == "":
        return None
    return v


NullableFloat = Annotated[Optional[float], BeforeValidator(_empty_to_none)]
NullableStr = Annotated[Optional[str], BeforeValidator(_empty_to_none)]

router = APIRouter(prefix="/api/loads", tags=["loads"], dependencies=[Depends(verify_api_key)])


@router.get("/search", response_model=LoadResponse)
async def search(
    # The voice AI sends "" when the carrier didn't mention a value.
    origin: NullableStr = Query(None),  # e.g. "Denver" or "CO"
    destination: NullableStr = Query(None),
    equipment_type: NullableStr = Query(None),  # e.g. "Dry Van"
    min_rate: NullableFloat = Query(None),
    max_rate: NullableFloat = Query(None),
    max_weight: NullableFloat = Query(None),  # Carrier's truck limit in lbs
    catalog: LoadCatalog = Depends(get_load_catalog),
):
    """Search available loads matching what the carrier told the voice AI.

    At least one of origin, destination or equipment_type is required.
    """
    if not (origin or destination or equipment_type):
        raise InvalidArgument(
            "At least one search parameter is required: origin, destination, equipment_type"
        )

    loads = await catalog.search(
        origin=origin,
        destination=destination,
        equipment_type=equipment_type,
        min_rate=min_rate,
        max_rate=max_rate,
        max_weight=max_weight,
    )
    return LoadResponse(loads=loads, total=len(loads))


@router.get("/{load_id}", response_model=Load)
async def get_load(load_id: str, catalog: LoadCatalog = Depends(get_load_catalog)):
    """Retrieve a specific load by its ID."""
    load = await catalog.get(load_id)
    if not load:
        raise NotFound(f"Load {load_id} not found")
    return load
