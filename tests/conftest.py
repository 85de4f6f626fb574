"""
Shared fixtures for all tests
"""
import pytest
from datetime import datetime
from typing import List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crm_geo.application.dto import GeocodeHit, MissReason, ProviderMiss, ProviderResult
from crm_geo.database.connection import Base
from crm_geo.models import GeoCacheDB, RouteCacheDB, JobDB  # noqa: F401
from crm_geo.repositories.cache_repository import GeoCacheRepository, RouteCacheRepository
from crm_geo.services.cache_store import CacheStore
from crm_geo.services.rate_limiter import RateLimiter


class FakeGeocoder:
    """Provider double: answers from a query -> result map, records calls"""

    def __init__(self, name: str, results: Optional[dict] = None, default: Optional[ProviderResult] = None,
                 is_configured: bool = True):
        self.name = name
        self.results = results or {}
        self.default = default or ProviderMiss(reason=MissReason.NOT_FOUND)
        self.is_configured = is_configured
        self.calls: List[str] = []

    async def geocode(self, query: str) -> ProviderResult:
        self.calls.append(query)
        return self.results.get(query, self.default)

    def hit(self, lat: float, lng: float, resolved_address: str = "") -> GeocodeHit:
        return GeocodeHit(lat=lat, lng=lng, resolved_address=resolved_address, provider=self.name)


class FakeRouter:
    """OSRM double: returns a fixed answer or raises"""

    def __init__(self, result=None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    async def route(self, origin_lat, origin_lng, dest_lat, dest_lng):
        self.calls.append((origin_lat, origin_lng, dest_lat, dest_lng))
        if self.error:
            raise self.error
        return self.result


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(scope="function")
def test_db_engine():
    """
    In-memory SQLite shared across threads (store calls run via asyncio.to_thread)
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def memory_cache_store():
    """CacheStore without a persistent store"""
    return CacheStore(GeoCacheRepository(None), RouteCacheRepository(None))


@pytest.fixture
def db_cache_store(session_factory):
    return CacheStore(GeoCacheRepository(session_factory), RouteCacheRepository(session_factory))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_clock):
    return RateLimiter(clock=fake_clock)


@pytest.fixture
def freeze_time():
    """
    Freeze the current time for tests
    """
    from freezegun import freeze_time as _freeze_time
    frozen_time = datetime(2026, 2, 13, 8, 10, 0)
    with _freeze_time(frozen_time):
        yield frozen_time


@pytest.fixture
def sample_jobs():
    """Job rows in the shape the CRM stores them"""
    return [
        {"id": "job-1", "title": "ציפוי אמבטיה", "address_text": "הרצל 10, אשדוד", "lat": 0.0, "lng": 0.0,
         "created_at": datetime(2026, 2, 1, 9, 0)},
        {"id": "job-2", "title": "תיקון", "address_text": "", "lat": 0.0, "lng": 0.0,
         "created_at": datetime(2026, 2, 2, 9, 0)},
        {"id": "job-3", "title": "ציפוי", "address_text": "ביאליק 5, רמת גן", "lat": 32.08, "lng": 34.81,
         "created_at": datetime(2026, 2, 3, 9, 0)},
        {"id": "job-4", "title": "ריק", "address_text": None, "lat": None, "lng": None,
         "created_at": datetime(2026, 2, 4, 9, 0)},
    ]


@pytest.fixture
def make_geocoder():
    """Factory for provider doubles"""
    return FakeGeocoder


@pytest.fixture
def make_router():
    return FakeRouter
