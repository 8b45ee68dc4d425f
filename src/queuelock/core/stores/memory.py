"""In-process lock store and run ledger.

Same contract as the SQL stores, guarded by a ``threading.Lock`` so that
triggers running on different threads of one process still race
correctly.  Only useful within a single process (tests, demos).
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime

from queuelock.core.models import LockRecord, RunLogEntry, RunStatus
from queuelock.core.protocols import Clock
from queuelock.core.timestamps import ensure_utc, utc_now


class InMemoryLockStore:
    def __init__(self) -> None:
        self._records: dict[tuple[str, str], LockRecord] = {}
        self._lock = threading.Lock()

    def try_insert(
        self, queue_name: str, job_name: str, created_at: datetime
    ) -> LockRecord | None:
        key = (queue_name, job_name)
        with self._lock:
            if key in self._records:
                return None
            record = LockRecord(queue_name, job_name, ensure_utc(created_at))
            self._records[key] = record
            return record

    def get(self, queue_name: str, job_name: str) -> LockRecord | None:
        with self._lock:
            return self._records.get((queue_name, job_name))

    def delete(self, queue_name: str, job_name: str) -> int:
        with self._lock:
            return 1 if self._records.pop((queue_name, job_name), None) else 0

    def list_locks(self) -> list[LockRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.created_at)

    def put(self, record: LockRecord) -> None:
        """Seed a record directly, e.g. one left behind by a crashed holder."""
        with self._lock:
            self._records[record.key] = record


class InMemoryRunLedger:
    def __init__(self, clock: Clock = utc_now) -> None:
        self.clock = clock
        self._entries: dict[int, RunLogEntry] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, entry: RunLogEntry) -> int:
        now = self.clock()
        with self._lock:
            log_id = next(self._ids)
            entry.id = log_id
            entry.created_at = entry.updated_at = now
            self._entries[log_id] = replace(entry)
        return log_id

    def update_status(self, log_id: int, status: RunStatus, remark: str) -> int:
        with self._lock:
            entry = self._entries.get(log_id)
            if entry is None:
                return 0
            entry.status = status
            entry.remark = remark
            entry.updated_at = self.clock()
            return 1

    def get(self, log_id: int) -> RunLogEntry | None:
        with self._lock:
            entry = self._entries.get(log_id)
            return replace(entry) if entry else None

    def list_entries(
        self, job_name: str | None = None, limit: int = 50
    ) -> list[RunLogEntry]:
        with self._lock:
            entries = [
                replace(e)
                for e in sorted(self._entries.values(), key=lambda e: e.id or 0, reverse=True)
                if job_name is None or e.job_name == job_name
            ]
        return entries[:limit]
