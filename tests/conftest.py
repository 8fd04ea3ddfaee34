"""
Shared test fixtures for the check-in service test suite.

Async throughout (aiosqlite + AsyncSession); every test gets its own
in-memory database.
"""

import os
import sys
from datetime import datetime, time, timedelta, timezone
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SEED_SAMPLE_DATA"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from checkin.api.v1.deps import get_clock, get_db
from checkin.core.time_window import PunchInWindow
from checkin.db.base import Base
from checkin.db.seed import seed_reference_data
from checkin.main import app
from checkin.services.admission import AdmissionPolicy, Geofence

IST = timezone(timedelta(hours=5, minutes=30))
OFFICE_LAT = 12.990461
OFFICE_LON = 80.220037


def ist(hour: int, minute: int, second: int = 0, day: int = 19) -> datetime:
    """A wall-clock instant in India Standard Time on 2026-10-<day>."""
    return datetime(2026, 10, day, hour, minute, second, tzinfo=IST)


class FrozenClock:
    """Callable clock whose current instant tests can move around."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seeded(db_session: AsyncSession) -> AsyncSession:
    """Database with the sample departments and employees loaded."""
    await seed_reference_data(db_session)
    return db_session


@pytest.fixture
def clock() -> FrozenClock:
    """Defaults to 09:10 IST, inside the punch-in window."""
    return FrozenClock(ist(9, 10))


@pytest.fixture
def policy() -> AdmissionPolicy:
    return AdmissionPolicy(
        window=PunchInWindow(start=time(9, 0), end=time(9, 45), tz=IST, label="IST"),
        geofence=Geofence(latitude=OFFICE_LAT, longitude=OFFICE_LON, radius_meters=200.0),
    )


@pytest.fixture
async def async_client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
