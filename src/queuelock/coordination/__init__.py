"""
queuelock.coordination - cross-instance exclusion for one job slot.

Modules
-------
lock_coordinator   LockCoordinator and its typed acquire outcomes
runner             JobRunner state machine
work               HeartbeatWork default bounded payload
"""

from queuelock.coordination.lock_coordinator import (
    Acquired,
    AcquireOutcome,
    Conflict,
    LockCoordinator,
    StoreUnavailable,
)
from queuelock.coordination.runner import JobRunner
from queuelock.coordination.work import HeartbeatWork

__all__ = [
    "Acquired",
    "AcquireOutcome",
    "Conflict",
    "LockCoordinator",
    "StoreUnavailable",
    "JobRunner",
    "HeartbeatWork",
]
