"""Pydantic schemas for per-user session state and the geofence."""

from datetime import datetime

from pydantic import BaseModel, Field

from watchtower.core.geofence import GeofenceStatus


class PositionIn(BaseModel):
    """Position reading from the client's location source."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class OnBehalfIn(BaseModel):
    """Toggle for reporting on behalf of someone on campus."""

    enabled: bool


class SessionOut(BaseModel):
    """Current reporting state for the calling user."""

    user_id: str
    geofence: GeofenceStatus
    cooldown_active: bool
    cooldown_started_at: datetime | None = None
    reporting_on_behalf: bool
    can_report: bool


class GeofenceStatusOut(BaseModel):
    status: GeofenceStatus


class BoundaryOut(BaseModel):
    """Campus boundary as closed ranges plus its centre."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float
    center_lat: float
    center_lng: float
