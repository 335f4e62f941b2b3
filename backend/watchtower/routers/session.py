"""API routes for per-user reporting state and the campus geofence."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from watchtower.core.engine import ReportingEngine
from watchtower.core.geofence import CampusBoundary
from watchtower.core.session import Identity
from watchtower.routers.deps import get_engine, get_identity
from watchtower.schemas.location import Coordinates
from watchtower.schemas.session import (
    BoundaryOut,
    GeofenceStatusOut,
    OnBehalfIn,
    PositionIn,
    SessionOut,
)

router = APIRouter(tags=["session"])


def _session_out(engine: ReportingEngine, identity: Identity) -> SessionOut:
    session = engine.session_for(identity)
    return SessionOut(
        user_id=identity.user_id,
        geofence=session.monitor.status,
        cooldown_active=session.gate.is_active,
        cooldown_started_at=session.gate.activated_at,
        reporting_on_behalf=session.reporting_on_behalf,
        can_report=identity.can_report,
    )


@router.get("/session", response_model=SessionOut)
async def get_session(
    engine: Annotated[ReportingEngine, Depends(get_engine)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> SessionOut:
    """Current geofence, cooldown and override state for the caller."""
    return _session_out(engine, identity)


@router.post("/session/position", response_model=GeofenceStatusOut)
async def post_position(
    position: PositionIn,
    engine: Annotated[ReportingEngine, Depends(get_engine)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> GeofenceStatusOut:
    """Feed a position reading to the caller's geofence monitor."""
    status = engine.update_position(identity, position.latitude, position.longitude)
    return GeofenceStatusOut(status=status)


@router.put("/session/on-behalf", response_model=SessionOut)
async def put_on_behalf(
    body: OnBehalfIn,
    engine: Annotated[ReportingEngine, Depends(get_engine)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> SessionOut:
    """Allow reporting from off campus on behalf of someone who is there."""
    engine.set_reporting_on_behalf(identity, body.enabled)
    return _session_out(engine, identity)


def _boundary(engine: ReportingEngine) -> CampusBoundary:
    if engine.boundary is None:
        raise RuntimeError("Campus boundary is not configured")
    return engine.boundary


@router.get("/geofence", response_model=BoundaryOut)
async def get_geofence(
    engine: Annotated[ReportingEngine, Depends(get_engine)],
) -> BoundaryOut:
    """The campus boundary used for eligibility checks."""
    return BoundaryOut(**_boundary(engine).model_dump())


@router.get("/geofence/clamp", response_model=Coordinates)
async def clamp_viewport(
    engine: Annotated[ReportingEngine, Depends(get_engine)],
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
) -> Coordinates:
    """Pull a map viewport centre back onto campus."""
    clamped = _boundary(engine).clamp(latitude, longitude)
    return Coordinates(latitude=clamped.latitude, longitude=clamped.longitude)
