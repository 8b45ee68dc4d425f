"""Lock store and run ledger implementations."""

from queuelock.core.stores.memory import InMemoryLockStore, InMemoryRunLedger
from queuelock.core.stores.sql import SqlLockStore, SqlRunLedger

__all__ = [
    "InMemoryLockStore",
    "InMemoryRunLedger",
    "SqlLockStore",
    "SqlRunLedger",
]
