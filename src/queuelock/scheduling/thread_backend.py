"""Threading-based trigger backend.

Runs the tick callback on a daemon thread::

    while not stop_event.wait(interval):
        tick_count += 1
        asyncio.run(tick_callback())

``stop()`` sets the event and joins the thread, so a run that is in flight
when the process shuts down gets the chance to clean up.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any

from queuelock.core.timestamps import utc_now

from .protocol import BackendHealth, TickCallback

logger = logging.getLogger(__name__)


class ThreadTriggerBackend:
    """Daemon-thread timing loop.

    Example:
        >>> backend = ThreadTriggerBackend()
        >>> backend.start(trigger.tick, interval_seconds=3600)
        >>> # ... later ...
        >>> backend.stop()
    """

    name = "thread"

    def __init__(
        self, join_timeout: float | None = None, fire_immediately: bool = False
    ) -> None:
        self.join_timeout = join_timeout
        self.fire_immediately = fire_immediately
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._interval: float = 3600.0
        self._started = False
        self._lock = threading.Lock()

    def start(self, tick_callback: TickCallback, interval_seconds: float = 3600.0) -> None:
        if self._started:
            logger.warning("ThreadTriggerBackend already started")
            return

        self._interval = interval_seconds
        self._stop_event.clear()

        def _tick() -> None:
            with self._lock:
                self._tick_count += 1
                self._last_tick = utc_now()
            try:
                asyncio.run(tick_callback())
            except Exception as e:
                logger.exception(f"Tick failed: {e}")

        def _loop() -> None:
            logger.info(f"ThreadTriggerBackend started (interval={interval_seconds}s)")
            if self.fire_immediately and not self._stop_event.is_set():
                _tick()
            while not self._stop_event.wait(interval_seconds):
                _tick()
            logger.info("ThreadTriggerBackend stopped")

        self._thread = threading.Thread(target=_loop, daemon=True, name="queuelock-trigger")
        self._thread.start()
        self._started = True

    def stop(self) -> None:
        """Stop the loop and wait for the in-flight tick to finish.

        ``join_timeout=None`` waits as long as the tick needs; a run that is
        cut off here would leave its lock row and ledger entry behind.
        """
        if not self._started:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self.join_timeout)
            if self._thread.is_alive():
                logger.warning("Trigger thread did not stop cleanly")

        self._started = False
        logger.info("ThreadTriggerBackend shutdown complete")

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()

    def get_health(self) -> BackendHealth:
        return BackendHealth(
            healthy=self.is_running,
            backend=self.name,
            tick_count=self._tick_count,
            last_tick=self._last_tick,
            extra={"interval_seconds": self._interval},
        )

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick
