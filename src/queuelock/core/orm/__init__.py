"""SQLAlchemy 2.0 persistence for queue locks and the run ledger.

Modules
-------
base        QueueLockBase (declarative base)
session     Engine factory, QueueLockSession, session_factory
tables      QueueLockTable, JobLogTable, init_schema

Tags:
    queuelock, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from queuelock.core.orm.base import QueueLockBase
from queuelock.core.orm.session import (
    QueueLockSession,
    create_queuelock_engine,
    session_factory,
)
from queuelock.core.orm.tables import JobLogTable, QueueLockTable, init_schema

__all__ = [
    "QueueLockBase",
    "QueueLockSession",
    "create_queuelock_engine",
    "session_factory",
    "QueueLockTable",
    "JobLogTable",
    "init_schema",
]
