"""In-memory registry of reportable parking locations."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock

from watchtower.core.errors import UnknownLocationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    """
    A parking location and its live report state.

    The report count is always the length of the timestamp list, so the two
    cannot drift apart.
    """

    id: str
    name: str
    latitude: float
    longitude: float
    recent_reports: tuple[datetime, ...] = field(default=())

    @property
    def report_count(self) -> int:
        return len(self.recent_reports)


# Built-in fallback used when nothing can be hydrated from the database.
SEED_LOCATIONS: tuple[Location, ...] = (
    Location("w86", "W86 - College Road Entrance", 37.575218732401666, -77.54606857558734),
    Location("w85", "W85 - Behind Crenshaw Field", 37.57364987987578, -77.54502251411432),
    Location("w84", "W84 - Behind Westhampton Hall", 37.57552909768003, -77.5443573263594),
    Location("w93", "W93 - Behind Lora Robins", 37.5727559749692, -77.54098605686313),
    Location("w73", "W73 - Between LoRo and Modlin", 37.57383165454905, -77.54173171096286),
    Location("w76", "W76 - Dining Hall", 37.57450341495302, -77.54079830224387),
    Location("u21", "U21 - In front of Queally Center", 37.57295155422638, -77.53943574007764),
    Location("r58", "R58 - Behind THC", 37.575732125582775, -77.53811072881572),
    Location("u8", "U8 - Behind Richmond Hall", 37.576293329227255, -77.53668513481405),
    Location("u6", "U6 - Behind Humanities", 37.57730518571923, -77.53644373595453),
    Location("gym", "The Gym", 37.58017487197686, -77.5397589462028),
    Location("r43", "R43 - North of International Center", 37.5796912986631, -77.53640617660773),
    Location("u3", "U3 - Behind BSchool", 37.57865396626121, -77.53468956290294),
)


class LocationRegistry:
    """
    Owns every Location for the lifetime of the process.

    Mutations go through apply(), which runs a pure function against the
    current value and swaps the result in under a lock.
    """

    def __init__(self, locations: Iterable[Location] = SEED_LOCATIONS):
        self._lock = Lock()
        self._locations: dict[str, Location] = {loc.id: loc for loc in locations}

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, location_id: str) -> bool:
        return location_id in self._locations

    def get(self, location_id: str) -> Location | None:
        return self._locations.get(location_id)

    def all(self) -> list[Location]:
        """All locations in seed/hydration order."""
        with self._lock:
            return list(self._locations.values())

    def apply(
        self, location_id: str, mutation: Callable[[Location], Location]
    ) -> Location:
        """Atomically replace a location with mutation(location)."""
        with self._lock:
            current = self._locations.get(location_id)
            if current is None:
                raise UnknownLocationError(location_id)
            updated = mutation(current)
            if updated.id != location_id:
                raise ValueError(f"Mutation changed location id {location_id!r}")
            self._locations[location_id] = updated
            return updated

    def hydrate(self, locations: Iterable[Location]) -> None:
        """Replace the full set of locations."""
        with self._lock:
            self._locations = {loc.id: loc for loc in locations}
        logger.info(f"Registry hydrated with {len(self._locations)} locations")
