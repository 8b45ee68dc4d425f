"""
Structured error types for queuelock.

Manifesto:
    Lock contention is not an error.  Only failures the caller must act on
    are raised; everything else becomes a ledger remark.  When something is
    raised, it carries enough metadata (category, retryability, queue, job,
    instance) for the log line to stand on its own.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     QueueLockError                        │
        │        (category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────┤
        │  StoreError            ConfigError        PayloadError    │
        │  (DATABASE)            (CONFIG)           (PAYLOAD)       │
        │      │                                                    │
        │  TransientStoreError                                      │
        │  (retryable=True)                                         │
        └──────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Raise for a uniqueness conflict on lock insert
    ✅ DO: Return ``None`` from ``LockStore.try_insert`` and let the
       coordinator map it to ``Conflict``

    ❌ DON'T: Swallow the original driver exception
    ✅ DO: Pass it as ``cause=`` so ``__cause__`` is chained

Tags:
    error-handling, exception-hierarchy, queuelock

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    PAYLOAD = "PAYLOAD"
    CANCELLED = "CANCELLED"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    queue_name: str | None = None
    job_name: str | None = None
    app_id: str | None = None
    log_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("queue_name", "job_name", "app_id", "log_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result


class QueueLockError(Exception):
    """
    Base exception for all queuelock errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Examples:
        >>> error = QueueLockError("boom")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(queue_name="hangfire-queue").context.queue_name
        'hangfire-queue'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QueueLockError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(QueueLockError):
    """Durable store failure (query, connection, transaction)."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class TransientStoreError(StoreError):
    """
    Store-level concurrency or availability failure.

    Raised by ``LockStore.try_insert`` when the insert failed for a reason
    other than a clean uniqueness violation (deadlock victim, serialization
    failure, lost connection).  The coordinator turns it into a
    ``StoreUnavailable`` outcome; the core never retries it.
    """

    default_retryable = True


# =============================================================================
# CONFIG / PAYLOAD
# =============================================================================


class ConfigError(QueueLockError):
    """Invalid or inconsistent configuration."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class PayloadError(QueueLockError):
    """Failure raised by bounded work while the lock is held."""

    default_category = ErrorCategory.PAYLOAD
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, QueueLockError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, QueueLockError):
        return error.category
    if isinstance(error, ConnectionError):
        return ErrorCategory.DATABASE
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QueueLockError",
    "StoreError",
    "TransientStoreError",
    "ConfigError",
    "PayloadError",
    "is_retryable",
    "categorize_error",
]
