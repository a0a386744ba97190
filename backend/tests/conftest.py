"""
Items API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the test suite.
Why:   Every route test runs against a real SQLite file (aiosqlite) bound
       through Bindings, so the SQL is exercised without a server database.
How:   pytest auto-discovers conftest.py; async fixtures use pytest_asyncio.

Fixture Hierarchy (all function-scoped):
    ├── mock_store:     AsyncMock RecordStore for service unit tests
    ├── sqlite_engine:  async engine on a fresh file in tmp_path, schema created
    ├── sqlite_store:   SqlRecordStore over sqlite_engine
    ├── counting_store: sqlite_store wrapper that counts calls
    ├── fake_clock:     settable monotonic clock for cache expiry
    ├── fake_redis:     in-memory redis.asyncio stand-in
    ├── redis_cache:    RedisResponseCache over fake_redis
    ├── memory_cache:   MemoryResponseCache on fake_clock
    ├── bindings:       Bindings(counting_store, memory_cache, fixed clocks)
    └── test_client:    HTTPX AsyncClient talking to create_app(bindings)
"""

import itertools
import os
from typing import Any, Dict, List, Mapping, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test-items.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CACHE_TTL_SECONDS"] = "30"

from itemsapi.database import create_engine_from_settings, dispose_engine, init_schema  # noqa: E402
from itemsapi.config import Settings  # noqa: E402
from itemsapi.dependencies import Bindings  # noqa: E402
from itemsapi.services.cache import MemoryResponseCache, RedisResponseCache  # noqa: E402
from itemsapi.services.store import RecordStore, SqlRecordStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class CountingStore(RecordStore):
    """Delegates to another store and records every call."""

    def __init__(self, inner: RecordStore):
        self.inner = inner
        self.reads: List[str] = []
        self.writes: List[str] = []

    async def all(self, sql: str, params: Optional[Mapping[str, Any]] = None):
        self.reads.append(sql)
        return await self.inner.all(sql, params)

    async def run(self, sql: str, params: Optional[Mapping[str, Any]] = None):
        self.writes.append(sql)
        return await self.inner.run(sql, params)


class FailingStore(RecordStore):
    """Every call raises; used for 500 paths and benchmark sentinels."""

    def __init__(self, message: str = "database is locked"):
        self.message = message
        self.calls = 0

    async def all(self, sql: str, params: Optional[Mapping[str, Any]] = None):
        self.calls += 1
        raise RuntimeError(self.message)

    async def run(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        self.calls += 1
        raise RuntimeError(self.message)


class FakeRedis:
    """In-memory stand-in for a redis.asyncio client (decode_responses=True)."""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.closed = False

    async def ping(self) -> bool:
        if not self.reachable:
            raise ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
        return True

    async def get(self, name: str) -> Optional[str]:
        return self.data.get(name)

    async def setex(self, name: str, time: int, value: str) -> bool:
        self.data[name] = value
        self.ttls[name] = time
        return True

    async def delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self.data.pop(name, None) is not None:
                self.ttls.pop(name, None)
                removed += 1
        return removed

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_store():
    """
    A mock RecordStore.

    Usage:
        mock_store.all.return_value = [{"id": "a", ...}]
        result = await item_service.get_item(mock_store, "a")
    """
    store = AsyncMock(spec=RecordStore)
    store.all = AsyncMock(return_value=[])
    store.run = AsyncMock(return_value={"success": True, "meta": {"changes": 1, "duration": 0.1}})
    return store


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Async engine on an empty SQLite file with the items table created."""
    config = Settings(database_url=f"sqlite+aiosqlite:///{tmp_path / 'items.db'}")
    engine = create_engine_from_settings(config)
    await init_schema(engine)
    yield engine
    await dispose_engine(engine)


@pytest.fixture
def sqlite_store(sqlite_engine):
    return SqlRecordStore(sqlite_engine)


@pytest.fixture
def counting_store(sqlite_store):
    return CountingStore(sqlite_store)


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis):
    return RedisResponseCache(fake_redis, default_ttl=30)


@pytest.fixture
def memory_cache(fake_clock):
    return MemoryResponseCache(default_ttl=30, clock=fake_clock)


@pytest.fixture
def bindings(counting_store, memory_cache):
    """
    Bindings with a deterministic id sequence and an advancing wall clock,
    so ordering by created_at is stable within a test.
    """
    ids = (f"item-{n}" for n in itertools.count(1))
    millis = itertools.count(1_700_000_000_000)
    return Bindings(
        store=counting_store,
        cache=memory_cache,
        new_id=lambda: next(ids),
        now_ms=lambda: next(millis),
    )


def make_client(bindings: Bindings) -> AsyncClient:
    from itemsapi.main import create_app

    transport = ASGITransport(app=create_app(bindings))
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def test_client(bindings):
    """
    HTTPX AsyncClient wired to an app serving `bindings`.

    ASGITransport awaits the whole ASGI call, background tasks included, so
    cache puts/deletes have completed when a request returns.
    """
    async with make_client(bindings) as client:
        yield client


@pytest.fixture
def client_for():
    """
    Factory for clients over ad-hoc Bindings.

    Usage:
        async with client_for(Bindings(store=failing_store)) as client:
            response = await client.get("/diag")
    """
    return make_client
