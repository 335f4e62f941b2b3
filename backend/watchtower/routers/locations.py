"""API routes for parking locations and reports."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from watchtower.config import get_settings
from watchtower.core.engine import ReportingEngine
from watchtower.core.errors import UnknownLocationError
from watchtower.core.session import Identity
from watchtower.rate_limit import limiter
from watchtower.routers.deps import get_engine, get_identity
from watchtower.schemas.location import (
    LocationOut,
    LocationsResponse,
    RejectionOut,
    ReportReceiptOut,
)

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("", response_model=LocationsResponse)
async def list_locations(
    engine: Annotated[ReportingEngine, Depends(get_engine)],
) -> LocationsResponse:
    """List every parking location with its live report count and severity."""
    return LocationsResponse(
        locations=[LocationOut.from_location(loc) for loc in engine.locations()]
    )


@router.get("/{location_id}", response_model=LocationOut)
async def get_location(
    location_id: str,
    engine: Annotated[ReportingEngine, Depends(get_engine)],
) -> LocationOut:
    """Get one parking location by id."""
    try:
        location = engine.get_location(location_id)
    except UnknownLocationError:
        raise HTTPException(status_code=404, detail="Location not found")
    return LocationOut.from_location(location)


@router.post(
    "/{location_id}/reports",
    response_model=ReportReceiptOut,
    status_code=201,
    responses={
        403: {"model": RejectionOut},
        404: {"description": "Location not found"},
        429: {"model": RejectionOut},
    },
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def create_report(
    request: Request,
    location_id: str,
    engine: Annotated[ReportingEngine, Depends(get_engine)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> ReportReceiptOut:
    """
    Report activity at a location.

    Rejections (out of bounds, cooldown, unverified) are turned into error
    responses by the application's exception handler.
    """
    try:
        receipt = await engine.report(identity, location_id)
    except UnknownLocationError:
        raise HTTPException(status_code=404, detail="Location not found")
    return ReportReceiptOut.from_receipt(receipt)
