"""WebSocket message schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from watchtower.core.geofence import GeofenceStatus
from watchtower.core.notices import Notice
from watchtower.schemas.location import LocationOut


class PositionMessage(BaseModel):
    """Client position reading."""

    type: Literal["position"] = "position"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationUpdateMessage(BaseModel):
    """Server message with a location whose report count changed."""

    type: Literal["location_update"] = "location_update"
    data: list[LocationOut]
    timestamp: datetime


class NoticeMessage(BaseModel):
    """Server message carrying a notice for this user."""

    type: Literal["notice"] = "notice"
    notice: Notice
    timestamp: datetime


class GeofenceMessage(BaseModel):
    """Server reply to a position message."""

    type: Literal["geofence"] = "geofence"
    status: GeofenceStatus


class PongMessage(BaseModel):
    """Pong response for keep-alive."""

    type: Literal["pong"] = "pong"


class ErrorMessage(BaseModel):
    """Error message from server."""

    type: Literal["error"] = "error"
    message: str
