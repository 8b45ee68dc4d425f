"""Trigger backend protocol.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TRIGGER BACKEND PROTOCOL                                                     │
│                                                                               │
│  Backends control WHEN a tick happens; HeartbeatTrigger controls WHAT a      │
│  tick does (one JobRunner attempt for its queue/job).                         │
│                                                                               │
│   ┌──────────────────┐     tick()     ┌──────────────────┐                   │
│   │  Thread backend  │ ─────────────► │ HeartbeatTrigger │ ──► JobRunner.run │
│   │  (default)       │                │                  │                   │
│   └──────────────────┘                └──────────────────┘                   │
│                                                                               │
│  Each instance runs its own backend.  Nothing here is shared between         │
│  instances: cross-instance exclusion belongs to the lock store.              │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

TickCallback = Callable[[], Awaitable[None]]


@runtime_checkable
class TriggerBackend(Protocol):
    """Timing-only contract: call ``tick_callback`` every ``interval_seconds``.

    ``stop()`` must wait for an in-flight tick before returning, so the
    runner it drives gets to release its lock and finalize its ledger row.
    """

    name: str

    def start(self, tick_callback: TickCallback, interval_seconds: float = 3600.0) -> None:
        ...

    def stop(self) -> None:
        ...

    def health(self) -> dict[str, Any]:
        ...


@dataclass
class BackendHealth:
    """Structured backend health response."""

    healthy: bool
    backend: str
    tick_count: int = 0
    last_tick: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "tick_count": self.tick_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            **self.extra,
        }
