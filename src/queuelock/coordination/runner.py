"""Job runner - one cross-instance-exclusive execution attempt.

Manifesto:
    Every attempt leaves exactly one ledger row in a terminal status and
    never leaves its lock row behind, whatever happens: completion,
    cancellation, conflict, stale reclaim, or a failing payload.  Lock
    contention is a normal outcome and returns quietly; only a payload
    failure reaches the caller, and only after cleanup.

Tags:
    queuelock, runner, state-machine, distributed-locks, ledger

Doc-Types:
    api-reference, architecture-diagram


┌──────────────────────────────────────────────────────────────────────────────┐
│  JOB RUNNER STATE MACHINE                                                     │
│                                                                               │
│   Starting ──► Acquiring ──┬── Acquired ─────────► Running ──┐               │
│   (ledger:                 │                       (work loop,│               │
│    Started)                ├── Conflict ──► ConflictClassifying               │
│                            │               ├─ gone    → Exited│               │
│                            │               ├─ stale   → reclaim, Exited       │
│                            │               └─ active  → Exited│               │
│                            └── StoreUnavailable ──► Exited    │               │
│                                                               ▼               │
│                                  Finalizing (release if held, ledger update)  │
│                                                               │               │
│                                                               ▼               │
│                                                             Done              │
│                                                                               │
│  Exit paths and their ledger status:                                          │
│  - work finished all ticks        → Completed "Success"                       │
│  - cancel signal observed         → Exited (cancelled)                        │
│  - asyncio task cancelled         → Exited (cancelled), CancelledError raised │
│  - payload raised                 → Exited (graceful shutdown), re-raised     │
│  - conflict / stale / store error → Exited, returns normally                  │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field

from queuelock.coordination.lock_coordinator import (
    Acquired,
    Conflict,
    LockCoordinator,
    StoreUnavailable,
)
from queuelock.core.errors import categorize_error
from queuelock.core.logging import LogContext, get_logger
from queuelock.core.models import LockRecord, RunLogEntry, RunResult, RunState, RunStatus
from queuelock.core.protocols import BoundedWork, CancelSignal, RunLedgerStore

logger = get_logger(__name__)


@dataclass
class _Attempt:
    """Mutable bookkeeping for a single ``run`` call."""

    queue_name: str
    job_name: str
    log_id: int | None = None
    record: LockRecord | None = None
    status: RunStatus = RunStatus.EXITED
    remark: str = "Run interrupted before reaching a terminal state."
    ticks: int = 0
    states: list[RunState] = field(default_factory=list)

    @property
    def state(self) -> RunState | None:
        return self.states[-1] if self.states else None

    def enter(self, state: RunState) -> None:
        self.states.append(state)

    def decide(self, status: RunStatus, remark: str) -> None:
        self.status = status
        self.remark = remark

    def result(self) -> RunResult:
        return RunResult(
            status=self.status,
            remark=self.remark,
            log_id=self.log_id,
            queue_name=self.queue_name,
            job_name=self.job_name,
            ticks=self.ticks,
            states=list(self.states),
        )


class JobRunner:
    """Runs one attempt of (queue, job) under the distributed lock.

    Example:
        >>> runner = JobRunner(
        ...     coordinator=LockCoordinator(SqlLockStore(engine)),
        ...     ledger=SqlRunLedger(engine),
        ...     app_id=settings.app_id,
        ...     work=HeartbeatWork(settings.app_id),
        ... )
        >>> result = await runner.run("hangfire-queue", "HeartbeatJob", stop_event)
        >>> result.status
        <RunStatus.COMPLETED: 'Completed'>
    """

    def __init__(
        self,
        coordinator: LockCoordinator,
        ledger: RunLedgerStore,
        app_id: str,
        work: BoundedWork | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.ledger = ledger
        self.app_id = app_id
        self.work = work

    async def run(
        self,
        queue_name: str,
        job_name: str,
        cancel: CancelSignal | None = None,
        work: BoundedWork | None = None,
    ) -> RunResult:
        """Execute one attempt and return its terminal status and remark.

        Raises:
            Exception: whatever the payload raised, after the lock was
                released and the ledger entry finalized.
            asyncio.CancelledError: if the task itself was cancelled,
                after the same cleanup.
            StoreError: if the lock could not be released; the ledger entry
                is still finalized, as Exited.
        """
        work = work or self.work
        if work is None:
            raise ValueError("JobRunner.run needs a BoundedWork")
        cancel = cancel if cancel is not None else threading.Event()

        attempt = _Attempt(queue_name, job_name)
        attempt.enter(RunState.STARTING)
        attempt.log_id = self.ledger.create(
            RunLogEntry(app_id=self.app_id, job_name=job_name)
        )

        with LogContext(
            app_id=self.app_id, queue=queue_name, job=job_name, log_id=attempt.log_id
        ):
            logger.info("run_started")
            try:
                attempt.enter(RunState.ACQUIRING)
                outcome = self.coordinator.acquire(queue_name, job_name)

                if isinstance(outcome, Acquired):
                    attempt.record = outcome.record
                    attempt.enter(RunState.RUNNING)
                    logger.info("lock_acquired")
                    await self._run_work(attempt, work, cancel)
                elif isinstance(outcome, Conflict):
                    attempt.enter(RunState.CONFLICT_CLASSIFYING)
                    self._classify_conflict(attempt)
                elif isinstance(outcome, StoreUnavailable):
                    attempt.decide(
                        RunStatus.EXITED,
                        f"Store unavailable: instance {self.app_id} could not "
                        f"confirm exclusive ownership of queue {queue_name} with job "
                        f"{job_name}; attempt abandoned. ({outcome.error.message})",
                    )
            except asyncio.CancelledError:
                attempt.decide(
                    RunStatus.EXITED,
                    f"Instance {self.app_id} cancelled queue {queue_name} with job "
                    f"{job_name} at tick {attempt.ticks}; lock released by graceful shutdown.",
                )
                logger.warning("run_task_cancelled", tick=attempt.ticks)
                raise
            except Exception as e:
                if attempt.state is RunState.RUNNING:
                    remark = (
                        f"Instance {self.app_id} deleting queue {queue_name} with job "
                        f"{job_name} by graceful shutdown after failure: "
                        f"{type(e).__name__}: {e}"
                    )
                else:
                    remark = (
                        f"Instance {self.app_id} could not coordinate queue {queue_name} "
                        f"with job {job_name}: {type(e).__name__}: {e}"
                    )
                attempt.decide(RunStatus.EXITED, remark)
                logger.exception(
                    "run_failed",
                    state=attempt.state.value if attempt.state else None,
                    category=categorize_error(e).value,
                )
                raise
            finally:
                self._finalize(attempt)

            logger.info(
                "run_finished",
                status=attempt.status.value,
                remark=attempt.remark,
                ticks=attempt.ticks,
            )
        return attempt.result()

    # === States ===

    async def _run_work(
        self, attempt: _Attempt, work: BoundedWork, cancel: CancelSignal
    ) -> None:
        outcome = await work(attempt.queue_name, attempt.job_name, cancel)
        attempt.ticks = outcome.ticks
        if outcome.cancelled:
            attempt.decide(
                RunStatus.EXITED,
                f"Instance {self.app_id} cancelled queue {attempt.queue_name} with job "
                f"{attempt.job_name} at tick {outcome.ticks}; lock released by graceful shutdown.",
            )
        else:
            attempt.decide(RunStatus.COMPLETED, "Success")

    def _classify_conflict(self, attempt: _Attempt) -> None:
        queue_name, job_name = attempt.queue_name, attempt.job_name
        record = self.coordinator.inspect(queue_name, job_name)

        if record is None:
            logger.info("lock_conflict", classification="released")
            attempt.decide(
                RunStatus.EXITED,
                f"Queue {queue_name} with job {job_name}: lock released by the time of inspection.",
            )
            return

        if self.coordinator.is_stale(record):
            self.coordinator.reclaim(record)
            logger.warning(
                "lock_conflict",
                classification="stale",
                lock_created_at=record.created_at.isoformat(),
            )
            attempt.decide(
                RunStatus.EXITED,
                f"Queue {queue_name} with job {job_name}: stale lock reclaimed; attempt "
                f"abandoned after it had been locked for more than "
                f"{self.coordinator.max_age_minutes} minutes.",
            )
            return

        logger.info(
            "lock_conflict",
            classification="active",
            lock_created_at=record.created_at.isoformat(),
        )
        attempt.decide(
            RunStatus.EXITED,
            f"Violation in unique constraint: instance {self.app_id} found queue "
            f"{queue_name} with job {job_name} already processing.",
        )

    def _finalize(self, attempt: _Attempt) -> None:
        attempt.enter(RunState.FINALIZING)
        try:
            if attempt.record is not None:
                self.coordinator.release(attempt.record)
                attempt.record = None
        except Exception as e:
            attempt.decide(
                RunStatus.EXITED,
                f"Instance {self.app_id} failed to release the lock for queue "
                f"{attempt.queue_name} with job {attempt.job_name}: {type(e).__name__}: {e}",
            )
            logger.exception("lock_release_failed", category=categorize_error(e).value)
            raise
        finally:
            if attempt.log_id is not None:
                self.ledger.update_status(attempt.log_id, attempt.status, attempt.remark)
            attempt.enter(RunState.DONE)
