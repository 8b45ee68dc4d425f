"""Lock coordinator - acquire, inspect, reclaim and release queue locks.

Manifesto:
    Multiple instances must never run the same (queue, job) simultaneously.
    The coordinator gives them exactly four moves over the shared lock row:
    insert it, read it, judge it stale, delete it.  It never updates a row
    and never caches one, so there is nothing for two instances to disagree
    about except who inserted first, and the store decides that.

Tags:
    queuelock, distributed-locks, staleness, concurrency, safety

Doc-Types:
    api-reference, architecture-diagram


    Acquire outcomes::

        acquire(q, j)
            │
            ├── store.try_insert → LockRecord   ──► Acquired(record)
            ├── store.try_insert → None         ──► Conflict(q, j)
            └── TransientStoreError             ──► StoreUnavailable(q, j, error)

    Staleness (total elapsed, not the minutes component)::

        now - record.created_at >= max_age   →  stale

    A holder that legitimately runs longer than ``max_age`` can be reclaimed
    by a peer.  There is no lease renewal: keep the work well under the
    threshold.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from queuelock.core.errors import TransientStoreError
from queuelock.core.models import LockRecord
from queuelock.core.protocols import Clock, LockStore
from queuelock.core.settings import DEFAULT_LOCK_MAX_AGE_MINUTES
from queuelock.core.timestamps import ensure_utc, utc_now

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Acquire outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Acquired:
    """The lock row was inserted by this attempt."""

    record: LockRecord


@dataclass(frozen=True)
class Conflict:
    """Another holder's row already exists (uniqueness violation)."""

    queue_name: str
    job_name: str


@dataclass(frozen=True)
class StoreUnavailable:
    """The insert failed for a reason other than a clean conflict."""

    queue_name: str
    job_name: str
    error: TransientStoreError


AcquireOutcome = Acquired | Conflict | StoreUnavailable


class LockCoordinator:
    """Race-safe transitions over ``LockRecord``.

    Example:
        >>> coordinator = LockCoordinator(SqlLockStore(engine))
        >>> outcome = coordinator.acquire("hangfire-queue", "HeartbeatJob")
        >>> if isinstance(outcome, Acquired):
        ...     try:
        ...         ...  # bounded work
        ...     finally:
        ...         coordinator.release(outcome.record)
    """

    def __init__(
        self,
        store: LockStore,
        *,
        max_age_minutes: int = DEFAULT_LOCK_MAX_AGE_MINUTES,
        clock: Clock = utc_now,
    ) -> None:
        if max_age_minutes <= 0:
            raise ValueError(f"max_age_minutes must be positive, got {max_age_minutes}")
        self.store = store
        self.max_age_minutes = max_age_minutes
        self.clock = clock

    @property
    def max_age(self) -> timedelta:
        return timedelta(minutes=self.max_age_minutes)

    def acquire(self, queue_name: str, job_name: str) -> AcquireOutcome:
        """Try to insert the lock row for (queue, job).

        A conflict is an expected outcome under contention, not an error.
        """
        try:
            record = self.store.try_insert(queue_name, job_name, self.clock())
        except TransientStoreError as e:
            logger.warning(f"Lock acquire for {queue_name}/{job_name} hit a store failure: {e}")
            return StoreUnavailable(queue_name, job_name, e)

        if record is None:
            logger.debug(f"Lock for {queue_name}/{job_name} already held")
            return Conflict(queue_name, job_name)

        logger.debug(f"Acquired lock for {queue_name}/{job_name}")
        return Acquired(record)

    def inspect(self, queue_name: str, job_name: str) -> LockRecord | None:
        """Current row for (queue, job).

        ``None`` means the holder released it between the failed acquire
        and this read.
        """
        return self.store.get(queue_name, job_name)

    def is_stale(
        self,
        record: LockRecord,
        now: datetime | None = None,
        max_age_minutes: int | None = None,
    ) -> bool:
        """True once the row has existed for at least ``max_age_minutes``."""
        now = ensure_utc(now or self.clock())
        max_age = (
            timedelta(minutes=max_age_minutes)
            if max_age_minutes is not None
            else self.max_age
        )
        return now - ensure_utc(record.created_at) >= max_age

    def reclaim(self, record: LockRecord) -> int:
        """Delete a stale row without checking that its holder is gone."""
        count = self.store.delete(record.queue_name, record.job_name)
        logger.info(
            f"Reclaimed stale lock for {record.queue_name}/{record.job_name} "
            f"(created {record.created_at.isoformat()})"
        )
        return count

    def release(self, record: LockRecord) -> int:
        """Delete the row this attempt created.  Idempotent."""
        count = self.store.delete(record.queue_name, record.job_name)
        if count == 0:
            logger.info(
                f"Lock for {record.queue_name}/{record.job_name} was already gone at release"
            )
        return count

    def list_locks(self) -> list[LockRecord]:
        return self.store.list_locks()
