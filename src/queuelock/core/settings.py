"""
Centralized settings for queuelock.

Manifesto:
    Each deployed instance is configured only through its environment.
    One validated, cached settings object means the lock threshold, the
    work duration and the instance identity are read in exactly one place,
    and an inconsistent combination fails at startup rather than at the
    first reclaimed lock.

All fields can be set via ``QUEUELOCK_*`` environment variables (e.g.
``QUEUELOCK_APP_ID=instance-one``) or a ``.env`` file.  List fields take
JSON (``QUEUELOCK_QUEUES='["hangfire-queue"]'``).

Tags:
    queuelock, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from uuid import uuid4

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from queuelock.core.errors import ConfigError

DEFAULT_LOCK_MAX_AGE_MINUTES = 5
DEFAULT_WORK_TICKS = 120
DEFAULT_TICK_INTERVAL_SECONDS = 1.0
DEFAULT_JOB_NAME = "HeartbeatJob"
HANGFIRE_QUEUE = "hangfire-queue"
CORAVEL_QUEUE = "coravel-queue"


class QueueLockSettings(BaseSettings):
    """Per-instance configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QUEUELOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    app_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Identifies this instance in the run ledger",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///queuelock.db")
    database_echo: bool = Field(default=False)

    # ── Lock / work ──────────────────────────────────────────────
    lock_max_age_minutes: int = Field(default=DEFAULT_LOCK_MAX_AGE_MINUTES, gt=0)
    work_ticks: int = Field(default=DEFAULT_WORK_TICKS, ge=0)
    tick_interval_seconds: float = Field(default=DEFAULT_TICK_INTERVAL_SECONDS, ge=0)

    # ── Trigger ──────────────────────────────────────────────────
    trigger_interval_seconds: float = Field(default=3600.0, gt=0)
    queues: list[str] = Field(default_factory=lambda: [HANGFIRE_QUEUE, CORAVEL_QUEUE])
    job_name: str = Field(default=DEFAULT_JOB_NAME, min_length=1)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", pattern="^(console|json)$")

    @model_validator(mode="after")
    def _work_shorter_than_lock_age(self) -> QueueLockSettings:
        """A healthy holder must never look stale to a peer."""
        if self.work_duration_seconds >= self.lock_max_age_minutes * 60:
            raise ValueError(
                f"work duration ({self.work_duration_seconds:.0f}s) must be shorter than "
                f"lock_max_age_minutes ({self.lock_max_age_minutes}m)"
            )
        return self

    @property
    def work_duration_seconds(self) -> float:
        return self.work_ticks * self.tick_interval_seconds

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, QueueLockSettings] = {}


def get_settings(*, _force_reload: bool = False, **overrides: object) -> QueueLockSettings:
    """Load, validate, and cache a :class:`QueueLockSettings` instance.

    Keyword overrides bypass the cache and take precedence over the
    environment.

    Raises:
        ConfigError: the environment or the overrides fail validation.
    """
    if not overrides and not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    try:
        settings = QueueLockSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        raise ConfigError(f"Invalid queuelock settings: {e}", cause=e) from e

    if overrides:
        return settings
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
