"""Pytest configuration and fixtures."""

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from database import StorageConnection, open_sqlite, run_migrations, seed_catalog
from services import CatalogManager, FortuneCatalogCache


class FakeClock:
    """Controllable wall clock for cooldown tests."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeTimer:
    """Controllable monotonic timer for cache expiry tests."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingConnector:
    """Opens real SQLite handles, counting calls and failing on demand."""

    def __init__(self):
        self.calls = 0
        self.fail = False
        self.delay = 0.0

    async def __call__(self, path):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise sqlite3.OperationalError("unable to open database file")
        return await open_sqlite(path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def connector():
    return CountingConnector()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "data" / "fortune.sqlite"


@pytest.fixture
async def storage(db_path):
    """Fresh storage connection over a temporary database."""
    conn = StorageConnection(db_path, reconnect_base_delay=0.01, health_check_timeout=1.0)
    yield conn
    await conn.close()


@pytest.fixture
async def seeded_storage(storage):
    """Storage with schema and the default catalog in place."""
    await run_migrations(storage)
    await seed_catalog(storage)
    return storage


@pytest.fixture
def cache(timer):
    return FortuneCatalogCache(ttl=300, timer=timer)


@pytest.fixture
async def manager(storage, cache, clock):
    """Initialized catalog manager with a controllable clock."""
    catalog = CatalogManager(storage, cache, cooldown_seconds=10, clock=clock)
    await catalog.initialize()
    yield catalog
    await catalog.close()
