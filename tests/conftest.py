"""
Pytest configuration and fixtures
"""

import os
import pytest
import pytest_asyncio
from collections import defaultdict
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from models.base import Base, SourceName
from ingestion.base import DataSourceGateway
from ingestion.sources import SOURCE_SPECS

# PostgreSQL tests run only when this is set
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

CONFLICT_FIELDS = {spec.table_name: spec.conflict_fields for spec in SOURCE_SPECS.values()}


# ============================================================================
# Gateway
# ============================================================================

class FakeGateway(DataSourceGateway):
    """
    Scripted gateway.

    Each source gets a list of outcomes consumed one per call; an outcome is
    either a list of records or an exception to raise. The last outcome
    repeats. Unscripted sources return no records.
    """

    def __init__(self, outcomes: Optional[Dict[SourceName, List[Any]]] = None):
        self.outcomes = {SourceName(k): list(v) for k, v in (outcomes or {}).items()}
        self.calls: Dict[SourceName, int] = defaultdict(int)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def _next(self, source: SourceName):
        self.calls[source] += 1
        script = self.outcomes.get(source)
        if not script:
            return []
        outcome = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)

    async def fetch_market_data(self):
        return await self._next(SourceName.MARKET_INDEX)

    async def fetch_fx_rates(self):
        return await self._next(SourceName.FX_RATES)

    async def fetch_weather_data(self):
        return await self._next(SourceName.WEATHER)

    async def fetch_events_data(self):
        return await self._next(SourceName.EVENTS)

    async def fetch_stem_news(self):
        return await self._next(SourceName.STEM_NEWS)

    async def fetch_inbound_data(self):
        return await self._next(SourceName.INBOUND)


# ============================================================================
# In-memory database
# ============================================================================

class FakeStore:
    """Committed state shared by every FakeSession of one factory"""

    def __init__(self):
        self.tables: Dict[str, Dict[Tuple, Dict[str, Any]]] = defaultdict(dict)
        self.added: List[Any] = []
        self.commits = 0
        self.rollbacks = 0

    def rows(self, table_name: str) -> List[Dict[str, Any]]:
        return list(self.tables[table_name].values())


class FakeSession:
    """
    Stand-in for AsyncSession that understands the loader's upserts.

    Statements are compiled with the PostgreSQL dialect; their bound values
    are staged under the table's natural key and applied on commit, which
    mirrors INSERT ... ON CONFLICT DO UPDATE.
    """

    def __init__(self, store: FakeStore, fail_on_execute: Optional[Exception] = None,
                 fail_after: int = 0):
        self.store = store
        self.fail_on_execute = fail_on_execute
        self.fail_after = fail_after
        self.executed = 0
        self._staged: List[Tuple[str, Dict[str, Any]]] = []
        self._added: List[Any] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._staged.clear()
        self._added.clear()
        return False

    async def execute(self, stmt, *args, **kwargs):
        if self.fail_on_execute is not None and self.executed >= self.fail_after:
            raise self.fail_on_execute
        self.executed += 1

        compiled = stmt.compile(dialect=postgresql.dialect())
        self._staged.append((stmt.table.name, dict(compiled.params)))

    def add(self, obj):
        self._added.append(obj)

    async def commit(self):
        for table_name, values in self._staged:
            key = tuple(values[field] for field in CONFLICT_FIELDS[table_name])
            self.store.tables[table_name][key] = values
        self.store.added.extend(self._added)
        self._staged.clear()
        self._added.clear()
        self.store.commits += 1

    async def rollback(self):
        self._staged.clear()
        self._added.clear()
        self.store.rollbacks += 1


class FakeSessionFactory:
    def __init__(self, store: Optional[FakeStore] = None, **session_kwargs):
        self.store = store or FakeStore()
        self.session_kwargs = session_kwargs
        self.opened = 0

    def __call__(self) -> FakeSession:
        self.opened += 1
        return FakeSession(self.store, **self.session_kwargs)


class SleepRecorder:
    """Injected sleep that records delays instead of waiting"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float):
        self.delays.append(seconds)


@pytest.fixture
def session_factory():
    return FakeSessionFactory()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


# ============================================================================
# Sample upstream records
# ============================================================================

@pytest.fixture
def source_records() -> Dict[SourceName, List[Dict[str, Any]]]:
    """Valid raw records for every source"""
    return {
        SourceName.MARKET_INDEX: [
            {"date": "2025-08-18", "symbol": "TOPIX", "value": 2934.5, "change_percent": 0.42},
            {"date": "2025-08-18", "symbol": "NIKKEI225", "value": 43714.3, "change_percent": -0.1},
            {"date": "2025-08-18", "symbol": "7203.T", "value": 2846.0},
            {"date": "2025-08-18", "symbol": "6758.T", "value": 3612.0},
            {"date": "2025-08-18", "symbol": "9984.T", "value": 12950.0},
        ],
        SourceName.FX_RATES: [
            {"date": "2025-08-18", "pair": "USD/JPY", "rate": 147.2, "change_percent": 0.1},
            {"date": "2025-08-18", "pair": "EUR/JPY", "rate": 171.9},
            {"date": "2025-08-18", "pair": "CNY/JPY", "rate": 20.5},
        ],
        SourceName.WEATHER: [
            {
                "date": "2025-08-18",
                "location": "Tokyo",
                "temperature_max": 34.1,
                "temperature_min": 26.3,
                "precipitation_mm": 0.0,
                "humidity_percent": 68,
                "weather_condition": "Sunny",
            },
        ],
        SourceName.EVENTS: [
            {
                "date": "2025-08-23",
                "title": "Summer Festival",
                "location": "Shibuya",
                "lat": 35.658,
                "lng": 139.7016,
                "event_type": "festival",
                "expected_attendance": 50000,
            },
            {"date": "2025-08-24", "title": "Tech Meetup"},
        ],
        SourceName.STEM_NEWS: [
            {
                "published_date": "2025-08-18",
                "title": "New semiconductor fab announced",
                "source": "Nikkei",
                "category": "semiconductor",
                "url": "https://example.com/fab",
                "sentiment_score": 0.6,
            },
        ],
        SourceName.INBOUND: [
            {"year_month": "2025-07", "country": "KR", "prefecture": "Tokyo", "visitors": 812000},
            {"year_month": "2025-07", "country": "TW", "visitors": 604000, "change_percent": 5.2},
        ],
    }


# ============================================================================
# PostgreSQL
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine"""
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL not set")

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def pg_session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(pg_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with pg_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_session_factory():
    """FakeSessionFactory class, for tests that need custom failure behaviour"""
    return FakeSessionFactory


@pytest.fixture
def make_gateway():
    return FakeGateway
