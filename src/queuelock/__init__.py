"""
queuelock - cross-instance exclusion for scheduled heartbeat jobs.

Every instance schedules the same job on its own.  A shared lock row per
(queue, job) decides which attempt actually runs, stale rows left by
crashed holders are reclaimed, and every attempt lands in the run ledger
with a terminal status.

Quick start::

    from queuelock import (
        HeartbeatWork, JobRunner, LockCoordinator,
        SqlLockStore, SqlRunLedger, create_queuelock_engine, init_schema,
    )

    engine = create_queuelock_engine("sqlite:///queuelock.db")
    init_schema(engine)
    runner = JobRunner(
        LockCoordinator(SqlLockStore(engine)),
        SqlRunLedger(engine),
        app_id="instance-one",
        work=HeartbeatWork("instance-one"),
    )
    result = await runner.run("hangfire-queue", "HeartbeatJob", stop_event)
"""

from queuelock.coordination import (
    Acquired,
    Conflict,
    HeartbeatWork,
    JobRunner,
    LockCoordinator,
    StoreUnavailable,
)
from queuelock.core.errors import QueueLockError, StoreError, TransientStoreError
from queuelock.core.models import LockRecord, RunLogEntry, RunResult, RunState, RunStatus
from queuelock.core.orm import create_queuelock_engine, init_schema
from queuelock.core.stores import (
    InMemoryLockStore,
    InMemoryRunLedger,
    SqlLockStore,
    SqlRunLedger,
)
from queuelock.scheduling import HeartbeatTrigger, ThreadTriggerBackend

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Acquired",
    "Conflict",
    "HeartbeatWork",
    "JobRunner",
    "LockCoordinator",
    "StoreUnavailable",
    "QueueLockError",
    "StoreError",
    "TransientStoreError",
    "LockRecord",
    "RunLogEntry",
    "RunResult",
    "RunState",
    "RunStatus",
    "create_queuelock_engine",
    "init_schema",
    "InMemoryLockStore",
    "InMemoryRunLedger",
    "SqlLockStore",
    "SqlRunLedger",
    "HeartbeatTrigger",
    "ThreadTriggerBackend",
]
