"""Pydantic schemas for API request/response validation."""

from watchtower.schemas.location import (
    Coordinates,
    LocationOut,
    LocationsResponse,
    RejectionOut,
    ReportReceiptOut,
)
from watchtower.schemas.session import (
    BoundaryOut,
    GeofenceStatusOut,
    OnBehalfIn,
    PositionIn,
    SessionOut,
)

__all__ = [
    "BoundaryOut",
    "Coordinates",
    "GeofenceStatusOut",
    "LocationOut",
    "LocationsResponse",
    "OnBehalfIn",
    "PositionIn",
    "RejectionOut",
    "ReportReceiptOut",
    "SessionOut",
]
