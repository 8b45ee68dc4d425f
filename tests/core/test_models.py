"""Tests for models and timestamp helpers."""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime, timedelta, timezone

import pytest

from queuelock.core.models import LockRecord, RunResult, RunState, RunStatus, WorkOutcome
from queuelock.core.timestamps import ensure_utc, utc_now


class TestRunStatus:
    def test_values_match_ledger_strings(self):
        assert [s.value for s in RunStatus] == ["Started", "Completed", "Exited"]

    def test_terminal(self):
        assert not RunStatus.STARTED.is_terminal
        assert RunStatus.COMPLETED.is_terminal
        assert RunStatus.EXITED.is_terminal


class TestLockRecord:
    def test_immutable(self):
        record = LockRecord("q", "j", utc_now())
        with pytest.raises(FrozenInstanceError):
            record.created_at = utc_now()  # type: ignore[misc]

    def test_key(self):
        assert LockRecord("q", "j", utc_now()).key == ("q", "j")


class TestRunResult:
    def test_to_dict(self):
        result = RunResult(
            status=RunStatus.COMPLETED,
            remark="Success",
            log_id=7,
            queue_name="hangfire-queue",
            job_name="HeartbeatJob",
            ticks=120,
            states=[RunState.STARTING, RunState.DONE],
        )
        assert result.completed
        assert result.to_dict() == {
            "status": "Completed",
            "remark": "Success",
            "log_id": 7,
            "queue_name": "hangfire-queue",
            "job_name": "HeartbeatJob",
            "ticks": 120,
            "states": ["Starting", "Done"],
        }

    def test_work_outcome_defaults(self):
        assert WorkOutcome(ticks=3).cancelled is False


class TestTimestamps:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is UTC

    def test_naive_is_taken_as_utc(self):
        naive = datetime(2026, 1, 5, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 1, 5, 12, 0, tzinfo=UTC)

    def test_other_offsets_are_converted(self):
        plus_two = datetime(2026, 1, 5, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        converted = ensure_utc(plus_two)
        assert converted == datetime(2026, 1, 5, 12, 0, tzinfo=UTC)
        assert converted.utcoffset() == timedelta(0)
