"""
Shared pytest fixtures for queuelock tests.

Fixtures:
    clock         FixedClock pinned to NOW, advanceable
    lock_store    InMemoryLockStore
    ledger        InMemoryRunLedger on the fixed clock
    coordinator   LockCoordinator over lock_store with the fixed clock
    engine        SQLAlchemy engine on a temporary SQLite file, schema created
    make_runner   factory for JobRunner instances sharing the stores above
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
import structlog

from queuelock.coordination import JobRunner, LockCoordinator
from queuelock.core.models import WorkOutcome
from queuelock.core.orm import create_queuelock_engine, init_schema
from queuelock.core.settings import clear_settings_cache
from queuelock.core.stores import InMemoryLockStore, InMemoryRunLedger

NOW = datetime(2026, 1, 5, 12, 0, 0, tzinfo=UTC)


class FixedClock:
    """Deterministic UTC clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class CountingWork:
    """Bounded work double: records calls and whether the lock row existed."""

    def __init__(self, lock_store=None, ticks: int = 3) -> None:
        self.lock_store = lock_store
        self.ticks = ticks
        self.calls: list[tuple[str, str]] = []
        self.lock_seen: list[bool] = []

    async def __call__(self, queue_name, job_name, cancel) -> WorkOutcome:
        self.calls.append((queue_name, job_name))
        if self.lock_store is not None:
            self.lock_seen.append(self.lock_store.get(queue_name, job_name) is not None)
        await asyncio.sleep(0)
        return WorkOutcome(ticks=self.ticks)


async def instant_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch) -> Generator[None, None, None]:
    """No QUEUELOCK_* variables, no cached settings, no leaked log context."""
    for key in list(os.environ):
        if key.startswith("QUEUELOCK_"):
            monkeypatch.delenv(key, raising=False)
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()
    yield
    clear_settings_cache()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Stores and coordination
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def lock_store() -> InMemoryLockStore:
    return InMemoryLockStore()


@pytest.fixture
def ledger(clock) -> InMemoryRunLedger:
    return InMemoryRunLedger(clock)


@pytest.fixture
def coordinator(lock_store, clock) -> LockCoordinator:
    return LockCoordinator(lock_store, clock=clock)


@pytest.fixture
def make_runner(coordinator, ledger):
    def _make(app_id: str = "instance-a", work=None) -> JobRunner:
        return JobRunner(coordinator, ledger, app_id, work=work)

    return _make


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "queuelock.db"


@pytest.fixture
def engine(db_path):
    engine = create_queuelock_engine(f"sqlite:///{db_path}")
    init_schema(engine)
    yield engine
    engine.dispose()


# =============================================================================
# Work doubles
# =============================================================================


@pytest.fixture
def counting_work(lock_store):
    def _make(ticks: int = 3) -> CountingWork:
        return CountingWork(lock_store, ticks=ticks)

    return _make


@pytest.fixture
def no_sleep():
    return instant_sleep
