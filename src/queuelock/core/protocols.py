"""
Canonical protocol definitions for queuelock.

Manifesto:
    The coordinator and the runner depend on the *shape* of their
    collaborators, never on a concrete store.  The SQL stores, the
    in-memory stores and any test double satisfy these protocols
    structurally.

Architecture:
    ::

        protocols.py
        ├── LockStore        — atomic insert / get / delete of LockRecord
        ├── RunLedgerStore   — create / update_status of RunLogEntry
        ├── Clock            — UTC "now" source
        ├── CancelSignal     — anything with is_set() (threading/asyncio Event)
        └── BoundedWork      — the opaque payload run while the lock is held

Guardrails:
    ❌ DON'T: Add holder ids or lease renewal to LockStore
    ✅ DO: Keep it insert-then-delete; the record is immutable

    ❌ DON'T: Raise from LockStore.try_insert on a duplicate key
    ✅ DO: Return None; raise TransientStoreError for anything else

Tags:
    protocol, lock-store, ledger, clock, cancellation, queuelock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from queuelock.core.models import LockRecord, RunLogEntry, RunStatus, WorkOutcome

Clock = Callable[[], datetime]


@runtime_checkable
class CancelSignal(Protocol):
    """Cooperative cancellation flag set by the trigger on shutdown."""

    def is_set(self) -> bool: ...


@runtime_checkable
class LockStore(Protocol):
    """Durable keyed store of LockRecord.

    ``try_insert`` must be atomic and linearizable across every instance
    sharing the store (a uniqueness constraint in a shared database).
    """

    def try_insert(
        self, queue_name: str, job_name: str, created_at: datetime
    ) -> LockRecord | None:
        """Insert a new record; ``None`` if one already exists for the key."""
        ...

    def get(self, queue_name: str, job_name: str) -> LockRecord | None:
        """Current record for the key, if any."""
        ...

    def delete(self, queue_name: str, job_name: str) -> int:
        """Delete the record for the key; number of rows removed."""
        ...

    def list_locks(self) -> list[LockRecord]:
        """Every record currently held."""
        ...


@runtime_checkable
class RunLedgerStore(Protocol):
    """Append-then-update log of execution attempts."""

    def create(self, entry: RunLogEntry) -> int:
        """Persist a Started entry and return its assigned id."""
        ...

    def update_status(self, log_id: int, status: RunStatus, remark: str) -> int:
        """Set the terminal status and remark; number of rows updated."""
        ...

    def get(self, log_id: int) -> RunLogEntry | None: ...

    def list_entries(
        self, job_name: str | None = None, limit: int = 50
    ) -> list[RunLogEntry]:
        """Newest entries first."""
        ...


@runtime_checkable
class BoundedWork(Protocol):
    """Unit of work executed while the lock is held.

    Must observe *cancel* before every suspension and return the
    number of ticks it completed.  Cancellation is reported through
    ``WorkOutcome.cancelled``, not by raising.
    """

    async def __call__(
        self, queue_name: str, job_name: str, cancel: CancelSignal
    ) -> WorkOutcome: ...
