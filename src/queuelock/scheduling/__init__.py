"""
queuelock.scheduling - when to attempt a run.

Each instance runs one HeartbeatTrigger per queue.  Triggers never talk
to each other; the lock store decides which attempt actually runs.

Modules
-------
protocol        TriggerBackend protocol and BackendHealth
thread_backend  ThreadTriggerBackend (daemon thread timing loop)
trigger         HeartbeatTrigger (periodic + on-demand, graceful stop)
"""

from .protocol import BackendHealth, TickCallback, TriggerBackend
from .thread_backend import ThreadTriggerBackend
from .trigger import HOURLY, HeartbeatTrigger, TriggerStats

__all__ = [
    "BackendHealth",
    "TickCallback",
    "TriggerBackend",
    "ThreadTriggerBackend",
    "HOURLY",
    "HeartbeatTrigger",
    "TriggerStats",
]
