"""Campus geofence: boundary check, exit detection and viewport clamping."""

import logging
import math
from collections.abc import Callable
from enum import StrEnum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from watchtower.config import Settings

logger = logging.getLogger(__name__)


class Position(NamedTuple):
    latitude: float
    longitude: float


class GeofenceStatus(StrEnum):
    UNKNOWN = "unknown"
    INSIDE = "inside"
    OUTSIDE = "outside"


class CampusBoundary(BaseModel):
    """Closed latitude/longitude ranges describing the campus, plus its centre."""

    model_config = ConfigDict(frozen=True)

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float
    center_lat: float
    center_lng: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "CampusBoundary":
        return cls(
            min_lat=settings.campus_min_latitude,
            max_lat=settings.campus_max_latitude,
            min_lng=settings.campus_min_longitude,
            max_lng=settings.campus_max_longitude,
            center_lat=settings.campus_center_latitude,
            center_lng=settings.campus_center_longitude,
        )

    def contains(self, lat: float, lng: float) -> bool:
        """Check if coordinates are within the boundary."""
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lng <= lng <= self.max_lng
        )

    def clamp(self, lat: float, lng: float) -> Position:
        """Pull each out-of-range coordinate back to the campus centre."""
        if not self.min_lat <= lat <= self.max_lat:
            lat = self.center_lat
        if not self.min_lng <= lng <= self.max_lng:
            lng = self.center_lng
        return Position(lat, lng)


def _is_valid(position: Position | None) -> bool:
    if position is None:
        return False
    try:
        lat, lng = float(position[0]), float(position[1])
    except (TypeError, ValueError, IndexError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


class GeofenceMonitor:
    """
    Tracks one user's inside/outside status from a stream of positions.

    The exit callback fires once per transition into OUTSIDE; further outside
    readings are silent until the user is seen inside again.
    """

    def __init__(
        self,
        boundary: CampusBoundary,
        on_exit: Callable[[Position], None] | None = None,
    ):
        self.boundary = boundary
        self.on_exit = on_exit
        self._status = GeofenceStatus.UNKNOWN
        self._last_position: Position | None = None

    @property
    def status(self) -> GeofenceStatus:
        return self._status

    @property
    def last_position(self) -> Position | None:
        return self._last_position

    def evaluate(self, position: Position | None) -> GeofenceStatus:
        """Update status from a new reading and return the current status."""
        if not _is_valid(position):
            logger.debug(f"Ignoring malformed position: {position!r}")
            return self._status

        position = Position(float(position[0]), float(position[1]))
        previous = self._status
        if self.boundary.contains(position.latitude, position.longitude):
            self._status = GeofenceStatus.INSIDE
        else:
            self._status = GeofenceStatus.OUTSIDE
        self._last_position = position

        if self._status is GeofenceStatus.OUTSIDE and previous is not GeofenceStatus.OUTSIDE:
            logger.info(f"Position {position} left the campus boundary")
            if self.on_exit is not None:
                self.on_exit(position)

        return self._status

    def clamp(self, position: Position) -> Position:
        return self.boundary.clamp(position[0], position[1])
