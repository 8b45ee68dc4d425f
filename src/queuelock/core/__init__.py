"""
queuelock.core - models, protocols, stores and ambient services.

Modules
-------
models       LockRecord, RunLogEntry, RunStatus, RunState, RunResult, WorkOutcome
protocols    LockStore, RunLedgerStore, Clock, CancelSignal, BoundedWork
errors       QueueLockError hierarchy
logging      structlog configuration
settings     QueueLockSettings (pydantic-settings)
orm          SQLAlchemy tables, engine and sessions
stores       SQL and in-memory LockStore / RunLedgerStore
health       database health check
"""

from queuelock.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    PayloadError,
    QueueLockError,
    StoreError,
    TransientStoreError,
)
from queuelock.core.models import (
    LockRecord,
    RunLogEntry,
    RunResult,
    RunState,
    RunStatus,
    WorkOutcome,
)
from queuelock.core.protocols import BoundedWork, CancelSignal, Clock, LockStore, RunLedgerStore
from queuelock.core.timestamps import ensure_utc, utc_now

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "PayloadError",
    "QueueLockError",
    "StoreError",
    "TransientStoreError",
    "LockRecord",
    "RunLogEntry",
    "RunResult",
    "RunState",
    "RunStatus",
    "WorkOutcome",
    "BoundedWork",
    "CancelSignal",
    "Clock",
    "LockStore",
    "RunLedgerStore",
    "ensure_utc",
    "utc_now",
]
