"""Pytest fixtures for WatchTower backend tests."""

import heapq
import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from watchtower.core.engine import ReportingEngine
from watchtower.core.geofence import CampusBoundary
from watchtower.core.notices import NoticeBus
from watchtower.core.registry import Location, LocationRegistry
from watchtower.core.session import Identity
from watchtower.database import Base
from watchtower.services.persistence import PersistenceBridge

# Test database URL - in-memory SQLite shared through a static pool
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

START = datetime(2024, 9, 3, 12, 0, 0, tzinfo=UTC)

# Synthetic campus: unit square with its centre at (0.5, 0.5)
INSIDE = (0.5, 0.5)
OUTSIDE = (2.0, 2.0)


class ManualScheduler:
    """
    Virtual clock plus timer queue.

    advance() moves time forward and runs due timers in (run_at, scheduling
    order), setting the clock to each timer's due time before it runs.
    """

    def __init__(self, start: datetime = START):
        self.current = start
        self._queue: list[tuple[datetime, int, str, Callable[[], Awaitable[None]]]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self.current

    def schedule(
        self, run_at: datetime, func: Callable[[], Awaitable[None]], job_id: str
    ) -> None:
        heapq.heappush(self._queue, (run_at, next(self._seq), job_id, func))

    @property
    def job_ids(self) -> list[str]:
        return [job_id for _, _, job_id, _ in sorted(self._queue)]

    @property
    def due_times(self) -> list[datetime]:
        return [run_at for run_at, _, _, _ in sorted(self._queue)]

    async def advance(self, seconds: float) -> None:
        target = self.current + timedelta(seconds=seconds)
        while self._queue and self._queue[0][0] <= target:
            run_at, _, _, func = heapq.heappop(self._queue)
            self.current = max(self.current, run_at)
            await func()
        self.current = target


class EventRecorder:
    """NoticeBus listener collecting every event."""

    def __init__(self):
        self.events = []

    async def __call__(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def boundary() -> CampusBoundary:
    return CampusBoundary(
        min_lat=0.0, max_lat=1.0, min_lng=0.0, max_lng=1.0, center_lat=0.5, center_lng=0.5
    )


@pytest.fixture
def sample_locations() -> list[Location]:
    return [
        Location("lot-a", "Lot A", 0.2, 0.2),
        Location("lot-b", "Lot B", 0.8, 0.8),
    ]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def bridge() -> AsyncMock:
    """Mocked persistence bridge."""
    return AsyncMock(spec=PersistenceBridge)


@pytest.fixture
def engine(scheduler, bridge, recorder, boundary, sample_locations) -> ReportingEngine:
    bus = NoticeBus()
    bus.subscribe(recorder)
    return ReportingEngine(
        scheduler=scheduler,
        bridge=bridge,
        bus=bus,
        registry=LocationRegistry(sample_locations),
        boundary=boundary,
        clock=scheduler.now,
    )


@pytest.fixture
def alice() -> Identity:
    return Identity(user_id="alice", email_verified=True)


@pytest.fixture
def bob() -> Identity:
    return Identity(user_id="bob", email_verified=True)


@pytest_asyncio.fixture
async def async_engine():
    """Create async SQLAlchemy engine for testing."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sql_bridge(session_maker) -> PersistenceBridge:
    return PersistenceBridge(session_maker=session_maker)


@pytest_asyncio.fixture
async def client(engine) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client wired to the test engine."""
    from watchtower.main import app
    from watchtower.rate_limit import limiter

    app.state.engine = engine
    limiter.reset()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    await engine.drain()
    del app.state.engine
