"""Tests for ThreadTriggerBackend."""

import asyncio
import threading
import time

from queuelock.scheduling import BackendHealth, ThreadTriggerBackend, TriggerBackend


class TestThreadTriggerBackend:
    def test_implements_protocol(self):
        backend = ThreadTriggerBackend()
        assert isinstance(backend, TriggerBackend)
        assert backend.name == "thread"

    def test_start_and_stop(self):
        backend = ThreadTriggerBackend()
        ticks = 0

        async def tick():
            nonlocal ticks
            ticks += 1

        backend.start(tick, interval_seconds=0.05)
        assert backend.is_running
        time.sleep(0.3)
        backend.stop()

        assert not backend.is_running
        assert ticks >= 2
        assert backend.tick_count == ticks

    def test_waits_one_interval_before_first_tick(self):
        backend = ThreadTriggerBackend()
        fired = threading.Event()

        async def tick():
            fired.set()

        backend.start(tick, interval_seconds=60)
        try:
            assert not fired.wait(0.2)
        finally:
            backend.stop()
        assert backend.tick_count == 0

    def test_fire_immediately(self):
        backend = ThreadTriggerBackend(fire_immediately=True)
        fired = threading.Event()

        async def tick():
            fired.set()

        backend.start(tick, interval_seconds=60)
        try:
            assert fired.wait(2.0)
        finally:
            backend.stop()
        assert backend.tick_count == 1
        assert backend.last_tick is not None

    def test_failed_tick_does_not_stop_loop(self):
        backend = ThreadTriggerBackend()
        calls = 0

        async def tick():
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        backend.start(tick, interval_seconds=0.05)
        time.sleep(0.3)
        backend.stop()
        assert calls >= 2

    def test_double_start_ignored(self):
        backend = ThreadTriggerBackend()

        async def tick():
            pass

        backend.start(tick, interval_seconds=0.05)
        first_thread = backend._thread
        backend.start(tick, interval_seconds=0.05)
        assert backend._thread is first_thread
        backend.stop()

    def test_stop_when_not_started(self):
        backend = ThreadTriggerBackend()
        backend.stop()
        assert not backend.is_running

    def test_health(self):
        backend = ThreadTriggerBackend()
        health = backend.health()
        assert health["healthy"] is False
        assert health["backend"] == "thread"
        assert health["tick_count"] == 0
        assert health["last_tick"] is None

        async def tick():
            pass

        backend.start(tick, interval_seconds=0.05)
        time.sleep(0.15)
        structured = backend.get_health()
        backend.stop()

        assert isinstance(structured, BackendHealth)
        assert structured.healthy is True
        assert structured.extra["interval_seconds"] == 0.05

    def test_stop_waits_for_in_flight_tick_by_default(self):
        backend = ThreadTriggerBackend(fire_immediately=True)
        assert backend.join_timeout is None
        entered = threading.Event()
        finished = threading.Event()

        async def tick():
            entered.set()
            await asyncio.sleep(0.5)
            finished.set()

        backend.start(tick, interval_seconds=60)
        assert entered.wait(2.0)
        backend.stop()

        assert finished.is_set()
        assert not backend.is_running
