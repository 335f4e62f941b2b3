"""Persistence bridge mirroring location report state to the database."""

import asyncio
import logging
from collections.abc import Sequence
from contextlib import AsyncExitStack
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from watchtower.core.errors import HydrationError, PersistenceWriteError
from watchtower.core.registry import Location
from watchtower.database import async_session_maker
from watchtower.models import StoredLocation

logger = logging.getLogger(__name__)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO 8601 timestamp (naive values are taken as UTC)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class PersistenceBridge:
    """
    Eventually-consistent mirror of the location registry.

    Features:
    - One-shot load for hydration at startup
    - Partial writes after each report (count + appended timestamp)
    - Partial writes after each expiry (count + removed timestamps)

    Writes touching the same location run one at a time, in the order they
    were issued, so read-modify-write updates of the timestamp list never
    overwrite each other.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
    ):
        self.session_maker = session_maker
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, location_id: str) -> asyncio.Lock:
        lock = self._locks.get(location_id)
        if lock is None:
            lock = self._locks[location_id] = asyncio.Lock()
        return lock

    def _to_location(self, row: StoredLocation) -> Location:
        timestamps = []
        for raw in row.recent_reports or []:
            ts = parse_timestamp(raw)
            if ts is None:
                logger.warning(f"Skipping unreadable timestamp {raw!r} on {row.id}")
                continue
            timestamps.append(ts)
        timestamps.sort()

        if row.report_count != len(timestamps):
            logger.warning(
                f"Stored count {row.report_count} for {row.id} does not match "
                f"{len(timestamps)} timestamps; using timestamps"
            )

        return Location(
            id=row.id,
            name=row.name,
            latitude=row.latitude,
            longitude=row.longitude,
            recent_reports=tuple(timestamps),
        )

    def _to_row(self, location: Location, sort_order: int = 0) -> StoredLocation:
        return StoredLocation(
            id=location.id,
            name=location.name,
            latitude=location.latitude,
            longitude=location.longitude,
            report_count=location.report_count,
            recent_reports=[ts.isoformat() for ts in location.recent_reports],
            sort_order=sort_order,
        )

    async def load_locations(self) -> list[Location]:
        """Read every stored location, in display order."""
        try:
            async with self.session_maker() as db:
                result = await db.execute(
                    select(StoredLocation).order_by(
                        StoredLocation.sort_order, StoredLocation.id
                    )
                )
                rows = result.scalars().all()
                locations = [self._to_location(row) for row in rows]
        except SQLAlchemyError as e:
            raise HydrationError(f"Failed to load locations: {e}") from e

        logger.info(f"Loaded {len(locations)} stored locations")
        return locations

    async def record_report(self, location: Location, reported_at: datetime) -> None:
        """Set the new count and append one timestamp."""
        try:
            async with self._lock_for(location.id), self.session_maker() as db:
                row = await db.get(StoredLocation, location.id)
                if row is None:
                    db.add(self._to_row(location))
                else:
                    # Assign a new list so the JSON column is flagged dirty
                    row.recent_reports = [*(row.recent_reports or []), reported_at.isoformat()]
                    row.report_count = location.report_count
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceWriteError(
                f"Failed to record report for {location.id}: {e}"
            ) from e

    async def record_expiry(
        self, location: Location, expired: Sequence[datetime]
    ) -> None:
        """Set the new count and remove the expired timestamps."""
        gone = set(expired)
        try:
            async with self._lock_for(location.id), self.session_maker() as db:
                row = await db.get(StoredLocation, location.id)
                if row is None:
                    db.add(self._to_row(location))
                else:
                    row.recent_reports = [
                        raw
                        for raw in row.recent_reports or []
                        if parse_timestamp(raw) not in gone
                    ]
                    row.report_count = location.report_count
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceWriteError(
                f"Failed to record expiry for {location.id}: {e}"
            ) from e

    async def upsert_locations(self, locations: Sequence[Location]) -> int:
        """Write full documents for the given locations (last write wins)."""
        try:
            async with AsyncExitStack() as stack:
                # Sorted acquisition keeps multi-location writes deadlock free
                for location_id in sorted({loc.id for loc in locations}):
                    await stack.enter_async_context(self._lock_for(location_id))
                db = await stack.enter_async_context(self.session_maker())
                for order, location in enumerate(locations):
                    row = await db.get(StoredLocation, location.id)
                    if row is None:
                        db.add(self._to_row(location, sort_order=order))
                        continue
                    row.name = location.name
                    row.latitude = location.latitude
                    row.longitude = location.longitude
                    row.report_count = location.report_count
                    row.recent_reports = [ts.isoformat() for ts in location.recent_reports]
                await db.commit()
        except SQLAlchemyError as e:
            raise PersistenceWriteError(f"Failed to upsert locations: {e}") from e

        logger.info(f"Upserted {len(locations)} locations")
        return len(locations)
