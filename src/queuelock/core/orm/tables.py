"""Lock and ledger table definitions.

``queue_locks`` is keyed by (queue_name, job_name): the composite primary
key is the uniqueness constraint every instance races on.  ``job_logs``
gets a store-assigned, monotonic integer id.

Tags:
    queuelock, orm, sqlalchemy, tables

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column

from queuelock.core.orm.base import QueueLockBase


class QueueLockTable(QueueLockBase):
    __tablename__ = "queue_locks"

    queue_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    job_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<QueueLockTable(queue_name={self.queue_name}, "
            f"job_name={self.job_name}, created_at={self.created_at})>"
        )


class JobLogTable(QueueLockBase):
    __tablename__ = "job_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    app_id: Mapped[str] = mapped_column(String(64), nullable=False)
    job_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(35), nullable=False, default="Started")
    remark: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


def init_schema(engine: Engine) -> None:
    """Create both tables if they do not exist."""
    QueueLockBase.metadata.create_all(engine)


__all__ = ["QueueLockTable", "JobLogTable", "init_schema"]
