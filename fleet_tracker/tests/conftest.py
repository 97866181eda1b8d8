"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from fleet_tracker.app.main import app
from fleet_tracker.app.db.session import Base, build_engine, build_session_factory
from fleet_tracker.app.core.dependencies import get_driver_store, get_listing_breaker
from fleet_tracker.app.core.exceptions import StoreUnavailableError
from fleet_tracker.app.core.reliability import CircuitBreaker
from fleet_tracker.app.domain.tracking.engine import TrackingEngine
from fleet_tracker.app.services.driver_store import SqlDriverStore


# One SQLite file per test: separate connections per session, so concurrent
# commands really run as separate transactions
@pytest.fixture
async def test_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracking.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
def driver_store(session_factory):
    return SqlDriverStore(session_factory)


@pytest.fixture
def tracking_engine(driver_store):
    return TrackingEngine(driver_store)


# Store whose database is unreachable
class UnavailableDriverStore:
    def __init__(self):
        self.calls = 0

    async def _fail(self, operation):
        self.calls += 1
        raise StoreUnavailableError(operation, reason="connection refused")

    async def list_newest_first(self):
        await self._fail("list")

    async def get(self, driver_id):
        await self._fail("get")

    async def insert(self, name, phone):
        await self._fail("create")

    async def update_profile(self, driver_id, changes):
        await self._fail("update")

    async def set_tracking(self, driver_id, transition):
        await self._fail("tracking")

    async def record_location(self, driver_id, location):
        await self._fail("location")

    async def replace_all(self, roster):
        await self._fail("seed")

    async def ping(self):
        return False


@pytest.fixture
def unavailable_store():
    return UnavailableDriverStore()


@pytest.fixture
async def client(driver_store):
    """Async client for testing, wired to the per-test database."""
    app.dependency_overrides[get_driver_store] = lambda: driver_store
    app.dependency_overrides[get_listing_breaker] = lambda: CircuitBreaker(failure_threshold=3, reset_timeout=30)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
async def offline_client(unavailable_store):
    """Async client whose driver store is unreachable."""
    app.dependency_overrides[get_driver_store] = lambda: unavailable_store
    app.dependency_overrides[get_listing_breaker] = lambda: CircuitBreaker(failure_threshold=3, reset_timeout=30)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
async def seeded_driver(tracking_engine):
    """A freshly created driver."""
    return await tracking_engine.create_driver("Test Driver", "+1-555-0199")
