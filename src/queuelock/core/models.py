"""Lock and run-ledger models.

Manifesto:
    The lock row and the ledger row are the only shared state between
    instances.  Both are plain dataclasses so the coordinator and the runner
    never touch ORM objects, and the in-memory stores behave exactly like
    the SQL ones.

Tags:
    queuelock, models, dataclasses, schema-mapping

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class RunStatus(str, Enum):
    """Lifecycle status of one execution attempt."""

    STARTED = "Started"
    COMPLETED = "Completed"
    EXITED = "Exited"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.STARTED


class RunState(str, Enum):
    """States visited by ``JobRunner.run``."""

    STARTING = "Starting"
    ACQUIRING = "Acquiring"
    RUNNING = "Running"
    CONFLICT_CLASSIFYING = "ConflictClassifying"
    FINALIZING = "Finalizing"
    DONE = "Done"


# ---------------------------------------------------------------------------
# queue_locks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LockRecord:
    """Exclusively-held slot for one (queue, job) pair (``queue_locks``).

    Immutable: a record is created once and only ever deleted.  It carries
    no holder id.
    """

    queue_name: str
    job_name: str
    created_at: datetime

    @property
    def key(self) -> tuple[str, str]:
        return (self.queue_name, self.job_name)


# ---------------------------------------------------------------------------
# job_logs
# ---------------------------------------------------------------------------


@dataclass
class RunLogEntry:
    """Audit row for one execution attempt (``job_logs``)."""

    app_id: str
    job_name: str
    status: RunStatus = RunStatus.STARTED
    remark: str = ""
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Run outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkOutcome:
    """Result of one bounded-work invocation."""

    ticks: int
    cancelled: bool = False


@dataclass
class RunResult:
    """What ``JobRunner.run`` hands back to its trigger."""

    status: RunStatus
    remark: str
    log_id: int | None = None
    queue_name: str = ""
    job_name: str = ""
    ticks: int = 0
    states: list[RunState] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "remark": self.remark,
            "log_id": self.log_id,
            "queue_name": self.queue_name,
            "job_name": self.job_name,
            "ticks": self.ticks,
            "states": [s.value for s in self.states],
        }
