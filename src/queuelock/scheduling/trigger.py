"""Heartbeat trigger - periodic and on-demand runs for one (queue, job).

Manifesto:
    Every instance schedules the heartbeat on its own.  The trigger only
    decides WHEN to ask the runner for an attempt, keeps two attempts of
    the same job from overlapping inside this process, and hands the
    runner a cancel signal that is set on shutdown.  Whether the attempt
    may actually run is decided by the shared lock store, not here.

Tags:
    queuelock, scheduling, trigger, overlap-prevention, graceful-shutdown

Doc-Types:
    api-reference


    Lifecycle::

        start()        backend ticks every interval ──► tick() ──► run_once()
        trigger_now()  one immediate attempt (same overlap guard)
        stop()         cancel.set() ──► running work exits at next tick
                       backend.stop() waits for the run to clean up
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from queuelock.coordination.runner import JobRunner
from queuelock.core.logging import get_logger
from queuelock.core.models import RunResult, RunStatus
from queuelock.core.settings import DEFAULT_JOB_NAME
from queuelock.core.timestamps import utc_now

from .protocol import TriggerBackend
from .thread_backend import ThreadTriggerBackend

logger = get_logger(__name__)

HOURLY = 3600.0


@dataclass
class TriggerStats:
    """Counters for one trigger."""

    attempts: int = 0
    completed: int = 0
    exited: int = 0
    skipped: int = 0
    failed: int = 0
    last_run: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "completed": self.completed,
            "exited": self.exited,
            "skipped": self.skipped,
            "failed": self.failed,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_error": self.last_error,
        }


class HeartbeatTrigger:
    """Drive ``JobRunner.run`` for one queue on a fixed interval.

    Example:
        >>> trigger = HeartbeatTrigger(runner, "hangfire-queue")
        >>> trigger.start()
        >>> # ... on SIGTERM ...
        >>> trigger.stop()
    """

    def __init__(
        self,
        runner: JobRunner,
        queue_name: str,
        job_name: str = DEFAULT_JOB_NAME,
        backend: TriggerBackend | None = None,
        interval_seconds: float = HOURLY,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.runner = runner
        self.queue_name = queue_name
        self.job_name = job_name
        self.backend = backend or ThreadTriggerBackend()
        self.interval_seconds = interval_seconds
        self.last_result: RunResult | None = None
        self._cancel = threading.Event()
        self._active = threading.Lock()
        self._stats = TriggerStats()

    @property
    def cancel_signal(self) -> threading.Event:
        return self._cancel

    @property
    def is_running(self) -> bool:
        """True while an attempt is in flight in this process."""
        return self._active.locked()

    def start(self) -> None:
        self._cancel.clear()
        logger.info(
            "trigger_started",
            queue=self.queue_name,
            job=self.job_name,
            backend=self.backend.name,
            interval_seconds=self.interval_seconds,
        )
        self.backend.start(self.tick, interval_seconds=self.interval_seconds)

    def stop(self) -> None:
        """Signal cancellation to the running attempt and drain the backend."""
        logger.info("trigger_stopping", queue=self.queue_name, job=self.job_name)
        self._cancel.set()
        self.backend.stop()
        logger.info("trigger_stopped", queue=self.queue_name, job=self.job_name)

    async def run_once(self) -> RunResult | None:
        """Run one attempt unless one is already active in this process.

        Returns ``None`` when skipped.  A payload error propagates after the
        runner has cleaned up.
        """
        if not self._active.acquire(blocking=False):
            self._stats.skipped += 1
            logger.info("trigger_skipped_overlap", queue=self.queue_name, job=self.job_name)
            return None

        try:
            self._stats.attempts += 1
            self._stats.last_run = utc_now()
            result = await self.runner.run(self.queue_name, self.job_name, self._cancel)
        except Exception as e:
            self._stats.failed += 1
            self._stats.last_error = f"{type(e).__name__}: {e}"
            raise
        finally:
            self._active.release()

        self.last_result = result
        if result.status is RunStatus.COMPLETED:
            self._stats.completed += 1
        else:
            self._stats.exited += 1
        return result

    async def tick(self) -> None:
        """Backend callback.  A failed attempt is logged and never stops the loop."""
        try:
            await self.run_once()
        except Exception:
            logger.exception("job_failed", queue=self.queue_name, job=self.job_name)

    def trigger_now(self) -> RunResult | None:
        """On-demand attempt from synchronous code (CLI, signal-free callers)."""
        return asyncio.run(self.run_once())

    def health(self) -> dict[str, Any]:
        backend_health = self.backend.health()
        return {
            "healthy": bool(backend_health.get("healthy", False)),
            "queue": self.queue_name,
            "job": self.job_name,
            "running": self.is_running,
            "backend": backend_health,
            "stats": self._stats.to_dict(),
        }

    def get_stats(self) -> TriggerStats:
        return self._stats
