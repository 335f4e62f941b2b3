"""Reporting engine: eligibility, report application, decay and hydration."""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from watchtower.core.errors import (
    CooldownActiveError,
    NotEligibleError,
    OutOfBoundsError,
    UnknownLocationError,
)
from watchtower.core.geofence import CampusBoundary, GeofenceMonitor, GeofenceStatus, Position
from watchtower.core.ledger import ReportLedger
from watchtower.core.notices import (
    GeneralNotice,
    LocationUpdatedEvent,
    NoticeBus,
    NoticeEvent,
    OutOfBoundsNotice,
)
from watchtower.core.registry import SEED_LOCATIONS, Location, LocationRegistry
from watchtower.core.session import Identity, ReportingSession

if TYPE_CHECKING:
    from watchtower.services.persistence import PersistenceBridge

logger = logging.getLogger(__name__)

COOLDOWN_MESSAGE = "You can't report again for another {minutes} minutes."
OUT_OF_BOUNDS_MESSAGE = "Reporting is disabled due to out of bounds location."
NOT_VERIFIED_MESSAGE = "Please verify your email before reporting."


class Severity(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def severity_for(report_count: int) -> Severity:
    """Map a report count to its display tier."""
    if report_count <= 0:
        return Severity.NONE
    if report_count <= 3:
        return Severity.LOW
    if report_count <= 6:
        return Severity.MEDIUM
    return Severity.HIGH


def utc_now() -> datetime:
    return datetime.now(UTC)


class ExpiryScheduler(Protocol):
    """Runs a coroutine function at a wall-clock time."""

    def schedule(
        self, run_at: datetime, func: Callable[[], Awaitable[None]], job_id: str
    ) -> None: ...


@dataclass(frozen=True)
class ReportReceipt:
    location: Location
    reported_at: datetime
    expires_at: datetime
    cooldown_until: datetime


class ReportingEngine:
    """
    Orchestrates report attempts against the shared location registry.

    Report attempts and expiry callbacks are serialised by one asyncio lock.
    Persistence writes and event publishing run as background tasks so no
    state transition waits on I/O.
    """

    def __init__(
        self,
        scheduler: ExpiryScheduler,
        bridge: "PersistenceBridge | None" = None,
        bus: NoticeBus | None = None,
        registry: LocationRegistry | None = None,
        boundary: CampusBoundary | None = None,
        decay_window: timedelta = timedelta(minutes=5),
        cooldown_window: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.scheduler = scheduler
        self.bridge = bridge
        self.bus = bus or NoticeBus()
        self.registry = registry or LocationRegistry()
        self.ledger = ReportLedger()
        self.boundary = boundary
        self.decay_window = decay_window
        self.cooldown_window = cooldown_window
        self.clock = clock

        self._lock = asyncio.Lock()
        self._sessions: dict[str, ReportingSession] = {}
        self._pending: set[asyncio.Task] = set()
        self._job_ids = itertools.count(1)

    def session_for(self, identity: Identity) -> ReportingSession:
        session = self._sessions.get(identity.user_id)
        if session is None:
            if self.boundary is None:
                raise RuntimeError("ReportingEngine has no campus boundary configured")
            user_id = identity.user_id
            monitor = GeofenceMonitor(
                self.boundary,
                on_exit=lambda position: self._notify(user_id, OutOfBoundsNotice()),
            )
            session = ReportingSession(user_id=user_id, monitor=monitor)
            self._sessions[user_id] = session
            logger.info(f"Created reporting session for {user_id}")
        return session

    def update_position(
        self, identity: Identity, latitude: float | None, longitude: float | None
    ) -> GeofenceStatus:
        session = self.session_for(identity)
        position = None
        if latitude is not None and longitude is not None:
            position = Position(latitude, longitude)
        return session.monitor.evaluate(position)

    def set_reporting_on_behalf(self, identity: Identity, enabled: bool) -> None:
        session = self.session_for(identity)
        session.reporting_on_behalf = enabled
        logger.info(f"Reporting on behalf for {identity.user_id} set to {enabled}")

    def locations(self) -> list[Location]:
        return self.registry.all()

    def get_location(self, location_id: str) -> Location:
        location = self.registry.get(location_id)
        if location is None:
            raise UnknownLocationError(location_id)
        return location

    async def report(self, identity: Identity, location_id: str) -> ReportReceipt:
        """
        Validate and apply one report.

        Raises a ReportRejectedError subclass (after notifying the user) or
        UnknownLocationError; on rejection nothing is mutated.
        """
        async with self._lock:
            if location_id not in self.registry:
                raise UnknownLocationError(location_id)

            session = self.session_for(identity)
            self._validate(identity, session)

            acquired_at = self.clock()
            if not session.gate.try_acquire(acquired_at):
                self._reject(identity.user_id, CooldownActiveError(self._cooldown_message()))

            location = self.registry.apply(
                location_id, lambda loc: self.ledger.append(loc, acquired_at)
            )
            reported_at = location.recent_reports[-1]
            expires_at = reported_at + self.decay_window
            cooldown_until = acquired_at + self.cooldown_window

            seq = next(self._job_ids)
            self.scheduler.schedule(
                expires_at,
                lambda: self._expire(location_id),
                job_id=f"expire-{location_id}-{seq}",
            )
            self.scheduler.schedule(
                cooldown_until,
                lambda: self._release_cooldown(session, acquired_at),
                job_id=f"cooldown-{identity.user_id}-{seq}",
            )

        logger.info(
            f"Report accepted for {location_id} from {identity.user_id}: "
            f"count={location.report_count}"
        )
        if self.bridge is not None:
            self._spawn(self._push(self.bridge.record_report(location, reported_at)))
        self._spawn(self.bus.publish(LocationUpdatedEvent(location)))

        return ReportReceipt(
            location=location,
            reported_at=reported_at,
            expires_at=expires_at,
            cooldown_until=cooldown_until,
        )

    def _validate(self, identity: Identity, session: ReportingSession) -> None:
        if not identity.can_report:
            self._reject(identity.user_id, NotEligibleError(NOT_VERIFIED_MESSAGE))

        if (
            session.monitor.status is not GeofenceStatus.INSIDE
            and not session.reporting_on_behalf
        ):
            self._reject(identity.user_id, OutOfBoundsError(OUT_OF_BOUNDS_MESSAGE))

        if session.gate.is_active:
            self._reject(identity.user_id, CooldownActiveError(self._cooldown_message()))

    def _reject(self, user_id: str, error: Exception) -> None:
        logger.warning(f"Report from {user_id} rejected: {error}")
        self._notify(user_id, GeneralNotice(message=str(error)))
        raise error

    def _cooldown_message(self) -> str:
        minutes = max(1, round(self.cooldown_window.total_seconds() / 60))
        return COOLDOWN_MESSAGE.format(minutes=minutes)

    async def _expire(self, location_id: str) -> int:
        """Timer callback: purge decayed reports for one location."""
        async with self._lock:
            now = self.clock()
            expired: tuple[datetime, ...] = ()

            def purge(location: Location) -> Location:
                nonlocal expired
                result = self.ledger.purge_expired(location, now, self.decay_window)
                expired = result.expired
                return result.location

            try:
                location = self.registry.apply(location_id, purge)
            except UnknownLocationError:
                logger.warning(f"Expiry fired for unknown location {location_id}")
                return 0

        if not expired:
            return 0

        logger.info(
            f"Expired {len(expired)} report(s) for {location_id}: "
            f"count={location.report_count}"
        )
        if self.bridge is not None:
            self._spawn(self._push(self.bridge.record_expiry(location, expired)))
        self._spawn(self.bus.publish(LocationUpdatedEvent(location)))
        return len(expired)

    async def _release_cooldown(
        self, session: ReportingSession, acquired_at: datetime
    ) -> None:
        """
        Timer callback: release the gate if this acquisition still holds it.

        Runs on its own timer rather than inside _expire so the cooldown and
        decay windows can differ; with equal windows both fire at the same
        instant, expiry first.
        """
        async with self._lock:
            if session.gate.is_active and session.gate.activated_at == acquired_at:
                session.gate.release()
                logger.info(f"Cooldown released for {session.user_id}")

    async def sweep(self) -> int:
        """Purge any decayed reports a timer has not handled yet."""
        total = 0
        for location in self.registry.all():
            if location.recent_reports:
                total += await self._expire(location.id)
        if total:
            logger.info(f"Sweep purged {total} stale report(s)")
        return total

    async def hydrate(self) -> None:
        """
        Load location state from the bridge, falling back to the seed list.

        Reports already past the decay window are dropped; the rest get their
        expiry timers rescheduled for the remaining time.
        """
        loaded: list[Location] = []
        if self.bridge is not None:
            try:
                loaded = await self.bridge.load_locations()
            except Exception as e:
                logger.error(f"Hydration failed, using built-in locations: {e}")
                loaded = []

        if not loaded:
            logger.warning("No stored locations found; seeding built-in list")
            self.registry.hydrate(SEED_LOCATIONS)
            if self.bridge is not None:
                self._spawn(self._push(self.bridge.upsert_locations(list(SEED_LOCATIONS))))
            return

        now = self.clock()
        fresh_locations: list[Location] = []
        corrected: list[Location] = []
        for location in loaded:
            result = self.ledger.purge_expired(location, now, self.decay_window)
            fresh = result.location
            fresh_locations.append(fresh)
            if result.removed:
                corrected.append(fresh)

        self.registry.hydrate(fresh_locations)

        for location in fresh_locations:
            self._reschedule(location)

        if corrected and self.bridge is not None:
            logger.info(f"Dropping stale reports from {len(corrected)} stored location(s)")
            self._spawn(self._push(self.bridge.upsert_locations(corrected)))

    def _reschedule(self, location: Location) -> None:
        # One timer per distinct timestamp; purge removes every due record.
        for reported_at in sorted(set(location.recent_reports)):
            seq = next(self._job_ids)
            self.scheduler.schedule(
                reported_at + self.decay_window,
                lambda location_id=location.id: self._expire(location_id),
                job_id=f"expire-{location.id}-{seq}",
            )

    def _notify(self, user_id: str, notice: GeneralNotice | OutOfBoundsNotice) -> None:
        self._spawn(self.bus.publish(NoticeEvent(user_id=user_id, notice=notice)))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _push(self, write: Awaitable[Any]) -> None:
        try:
            await write
        except Exception as e:
            # Local state stays authoritative; the store catches up on the next write.
            logger.error(f"Persistence write failed: {e}")

    async def drain(self) -> None:
        """Wait for outstanding persistence writes and event publishing."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
