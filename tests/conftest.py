"""Pytest configuration and shared fixtures for data sessions tests."""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

# Keep the user's config file and environment out of the tests before any imports
os.environ["DATA_SESSIONS_CONFIG"] = str(Path(tempfile.mkdtemp()) / "config.json")
os.environ.pop("DATA_SESSIONS_ENABLED", None)

from data_sessions import (
    DataSessionManager,
    InMemoryEntryStore,
    InMemoryPersistenceBridge,
    SqlitePersistenceBridge,
)


class FrozenClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = 1_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def bridge() -> InMemoryPersistenceBridge:
    return InMemoryPersistenceBridge()


@pytest.fixture
def manager(store, bridge, clock) -> DataSessionManager:
    return DataSessionManager(store=store, persistence=bridge, clock=clock)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "sessions.db"


@pytest_asyncio.fixture
async def sqlite_bridge(db_path) -> AsyncGenerator[SqlitePersistenceBridge, None]:
    """SQLite persistence bridge on a temporary file."""
    bridge = SqlitePersistenceBridge(db_path)
    yield bridge
    await bridge.close()
