"""SQL-backed lock store and run ledger.

Manifesto:
    The database's uniqueness constraint is the lock.  ``try_insert`` is a
    plain INSERT: the first committer wins, every other instance gets an
    ``IntegrityError`` which is translated to ``None``.  No row is ever
    updated, so there is no read-modify-write race to lose.

Architecture:
    ::

        SqlLockStore                      SqlRunLedger
        ├── try_insert → INSERT           ├── create → INSERT … RETURNING id
        │     IntegrityError  → None      ├── update_status → UPDATE by id
        │     OperationalError → Transient├── get
        ├── get        → SELECT by key    └── list_entries
        ├── delete     → DELETE by key
        └── list_locks

Tags:
    queuelock, repository, sqlalchemy, locks, ledger

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from queuelock.core.errors import ErrorContext, StoreError, TransientStoreError
from queuelock.core.models import LockRecord, RunLogEntry, RunStatus
from queuelock.core.orm.session import session_factory
from queuelock.core.orm.tables import JobLogTable, QueueLockTable
from queuelock.core.protocols import Clock
from queuelock.core.timestamps import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def _lock_from_row(row: QueueLockTable) -> LockRecord:
    return LockRecord(
        queue_name=row.queue_name,
        job_name=row.job_name,
        created_at=ensure_utc(row.created_at),
    )


def _entry_from_row(row: JobLogTable) -> RunLogEntry:
    return RunLogEntry(
        id=row.id,
        app_id=row.app_id,
        job_name=row.job_name,
        status=RunStatus(row.status),
        remark=row.remark,
        created_at=ensure_utc(row.created_at) if row.created_at else None,
        updated_at=ensure_utc(row.updated_at) if row.updated_at else None,
    )


class SqlLockStore:
    """``LockStore`` over the ``queue_locks`` table.

    Example:
        >>> store = SqlLockStore(engine)
        >>> record = store.try_insert("hangfire-queue", "HeartbeatJob", utc_now())
        >>> store.try_insert("hangfire-queue", "HeartbeatJob", utc_now()) is None
        True
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = session_factory(engine)

    def try_insert(
        self, queue_name: str, job_name: str, created_at: datetime
    ) -> LockRecord | None:
        """Atomically insert the lock row.

        Returns:
            The new record, or ``None`` when the key already exists.

        Raises:
            TransientStoreError: the insert failed for any reason other
                than a uniqueness violation.
        """
        context = ErrorContext(queue_name=queue_name, job_name=job_name)
        with self._sessions() as session:
            session.add(
                QueueLockTable(
                    queue_name=queue_name, job_name=job_name, created_at=created_at
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.debug(f"Lock already held for {queue_name}/{job_name}")
                return None
            except OperationalError as e:
                session.rollback()
                raise TransientStoreError(
                    f"Lock insert failed for {queue_name}/{job_name}: {e}",
                    context=context,
                    cause=e,
                ) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(
                    f"Lock insert failed for {queue_name}/{job_name}: {e}",
                    context=context,
                    cause=e,
                ) from e

        logger.debug(f"Inserted lock for {queue_name}/{job_name}")
        return LockRecord(queue_name, job_name, ensure_utc(created_at))

    def get(self, queue_name: str, job_name: str) -> LockRecord | None:
        try:
            with self._sessions() as session:
                row = session.get(QueueLockTable, (queue_name, job_name))
                return _lock_from_row(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(
                f"Lock lookup failed for {queue_name}/{job_name}: {e}",
                context=ErrorContext(queue_name=queue_name, job_name=job_name),
                cause=e,
            ) from e

    def delete(self, queue_name: str, job_name: str) -> int:
        try:
            with self._sessions() as session:
                result = session.execute(
                    delete(QueueLockTable).where(
                        QueueLockTable.queue_name == queue_name,
                        QueueLockTable.job_name == job_name,
                    )
                )
                session.commit()
                count = result.rowcount or 0
        except SQLAlchemyError as e:
            raise StoreError(
                f"Lock delete failed for {queue_name}/{job_name}: {e}",
                context=ErrorContext(queue_name=queue_name, job_name=job_name),
                cause=e,
            ) from e

        if count:
            logger.debug(f"Deleted lock for {queue_name}/{job_name}")
        return count

    def list_locks(self) -> list[LockRecord]:
        with self._sessions() as session:
            rows = session.scalars(
                select(QueueLockTable).order_by(QueueLockTable.created_at)
            ).all()
            return [_lock_from_row(row) for row in rows]


class SqlRunLedger:
    """``RunLedgerStore`` over the ``job_logs`` table."""

    def __init__(self, engine: Engine, clock: Clock = utc_now) -> None:
        self.engine = engine
        self.clock = clock
        self._sessions = session_factory(engine)

    def create(self, entry: RunLogEntry) -> int:
        now = self.clock()
        row = JobLogTable(
            app_id=entry.app_id,
            job_name=entry.job_name,
            status=entry.status.value,
            remark=entry.remark,
            created_at=now,
            updated_at=now,
        )
        try:
            with self._sessions() as session:
                session.add(row)
                session.commit()
                log_id = row.id
        except SQLAlchemyError as e:
            raise StoreError(
                f"Job log insert failed for {entry.job_name}: {e}",
                context=ErrorContext(job_name=entry.job_name, app_id=entry.app_id),
                cause=e,
            ) from e

        entry.id = log_id
        entry.created_at = entry.updated_at = now
        return log_id

    def update_status(self, log_id: int, status: RunStatus, remark: str) -> int:
        try:
            with self._sessions() as session:
                result = session.execute(
                    update(JobLogTable)
                    .where(JobLogTable.id == log_id)
                    .values(status=status.value, remark=remark, updated_at=self.clock())
                )
                session.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise StoreError(
                f"Job log update failed for id={log_id}: {e}",
                context=ErrorContext(log_id=log_id),
                cause=e,
            ) from e

    def get(self, log_id: int) -> RunLogEntry | None:
        with self._sessions() as session:
            row = session.get(JobLogTable, log_id)
            return _entry_from_row(row) if row is not None else None

    def list_entries(
        self, job_name: str | None = None, limit: int = 50
    ) -> list[RunLogEntry]:
        stmt = select(JobLogTable).order_by(JobLogTable.id.desc()).limit(limit)
        if job_name:
            stmt = stmt.where(JobLogTable.job_name == job_name)
        with self._sessions() as session:
            return [_entry_from_row(row) for row in session.scalars(stmt).all()]
