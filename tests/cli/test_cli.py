"""Tests for the ``queuelock`` CLI."""

import json
import signal
import threading
import time
from datetime import timedelta

import pytest
from typer.testing import CliRunner

from queuelock import __version__
from queuelock.cli import app
from queuelock.cli import jobs as jobs_module
from queuelock.coordination import JobRunner, LockCoordinator
from queuelock.core.models import WorkOutcome
from queuelock.core.stores import SqlLockStore, SqlRunLedger
from queuelock.core.timestamps import utc_now

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch):
    monkeypatch.setattr(jobs_module, "configure_logging", lambda *args, **kwargs: None)


def _run(db_path, *args):
    return runner.invoke(
        app, ["run", "hangfire-queue", "-d", str(db_path), "--ticks", "2", "--interval", "0", *args]
    )


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "run" in result.output
        assert "serve" in result.output


class TestDb:
    def test_init_creates_schema(self, db_path):
        result = runner.invoke(app, ["db", "init", "-d", str(db_path)])
        assert result.exit_code == 0, result.output
        assert db_path.exists()
        assert "Schema ready" in result.output


class TestRun:
    def test_run_completes(self, db_path, engine):
        result = _run(db_path, "--app-id", "instance-cli")
        assert result.exit_code == 0, result.output
        assert "Completed" in result.output
        assert "Success" in result.output

        entries = SqlRunLedger(engine).list_entries()
        assert len(entries) == 1
        assert entries[0].app_id == "instance-cli"
        assert SqlLockStore(engine).list_locks() == []

    def test_run_with_active_lock_exits_cleanly(self, db_path, engine):
        SqlLockStore(engine).try_insert("hangfire-queue", "HeartbeatJob", utc_now())
        result = _run(db_path)
        assert result.exit_code == 0, result.output
        assert "Exited" in result.output
        assert "already processing" in result.output

    def test_run_reclaims_stale_lock(self, db_path, engine):
        SqlLockStore(engine).try_insert(
            "hangfire-queue", "HeartbeatJob", utc_now() - timedelta(minutes=10)
        )
        result = _run(db_path)
        assert result.exit_code == 0, result.output
        assert "stale lock reclaimed" in result.output
        assert SqlLockStore(engine).list_locks() == []

    def test_custom_job_name(self, db_path, engine):
        result = _run(db_path, "--job", "OtherJob")
        assert result.exit_code == 0, result.output
        assert SqlRunLedger(engine).list_entries(job_name="OtherJob")

    def test_invalid_configuration(self, db_path):
        result = runner.invoke(
            app, ["run", "hangfire-queue", "-d", str(db_path), "--ticks", "1000", "--interval", "1"]
        )
        assert result.exit_code == 2

    def test_payload_error_exits_1(self, db_path, engine, monkeypatch):
        async def failing_work(queue_name, job_name, cancel):
            raise RuntimeError("payload exploded")

        def make_failing_runner(settings, engine):
            return JobRunner(
                LockCoordinator(SqlLockStore(engine)),
                SqlRunLedger(engine),
                settings.app_id,
                work=failing_work,
            )

        monkeypatch.setattr(jobs_module, "make_runner", make_failing_runner)
        result = _run(db_path)

        assert result.exit_code == 1
        assert SqlLockStore(engine).list_locks() == []
        assert "graceful shutdown" in SqlRunLedger(engine).list_entries()[0].remark


class TestCancelOnSignals:
    def test_sets_event_and_restores_handlers(self):
        previous = signal.getsignal(signal.SIGTERM)
        stop = threading.Event()

        with jobs_module.cancel_on_signals(stop):
            signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)

        assert stop.is_set()
        assert signal.getsignal(signal.SIGTERM) == previous

    def test_unknown_previous_handler_restored_as_default(self, monkeypatch):
        installed = {}

        def fake_signal(sig, handler):
            previous = installed.get(sig)
            installed[sig] = handler
            return previous

        monkeypatch.setattr(jobs_module.signal, "signal", fake_signal)

        with jobs_module.cancel_on_signals(threading.Event()):
            assert callable(installed[signal.SIGINT])

        assert installed[signal.SIGINT] is signal.SIG_DFL
        assert installed[signal.SIGTERM] is signal.SIG_DFL


class TestServe:
    def test_serve_starts_and_stops(self, db_path, monkeypatch):
        monkeypatch.setattr(jobs_module, "wait_for_shutdown", lambda stop: None)
        result = runner.invoke(app, ["serve", "-d", str(db_path), "-q", "hangfire-queue"])
        assert result.exit_code == 0, result.output
        assert "Serving" in result.output
        assert "hangfire-queue: 0 attempt(s)" in result.output

    def test_serve_run_now(self, db_path, engine, monkeypatch):
        monkeypatch.setenv("QUEUELOCK_WORK_TICKS", "1")
        monkeypatch.setenv("QUEUELOCK_TICK_INTERVAL_SECONDS", "0")
        monkeypatch.setattr(jobs_module, "wait_for_shutdown", lambda stop: time.sleep(0.5))

        result = runner.invoke(
            app,
            ["serve", "-d", str(db_path), "-q", "hangfire-queue", "-q", "coravel-queue", "--run-now"],
        )

        assert result.exit_code == 0, result.output
        assert "hangfire-queue: 1 attempt(s)" in result.output
        assert "coravel-queue: 1 attempt(s)" in result.output
        assert len(SqlRunLedger(engine).list_entries()) == 2


class TestInspection:
    def test_logs_json(self, db_path, engine):
        _run(db_path)
        result = runner.invoke(app, ["logs", "-d", str(db_path), "--json"])
        assert result.exit_code == 0, result.output

        entries = json.loads(result.stdout)
        assert len(entries) == 1
        assert entries[0]["status"] == "Completed"
        assert entries[0]["remark"] == "Success"

    def test_logs_filter_and_empty(self, db_path, engine):
        result = runner.invoke(app, ["logs", "-d", str(db_path), "--job", "Nope"])
        assert result.exit_code == 0
        assert "No items" in result.output

    def test_locks(self, db_path, engine):
        SqlLockStore(engine).try_insert("coravel-queue", "HeartbeatJob", utc_now())
        result = runner.invoke(app, ["locks", "-d", str(db_path), "--json"])
        assert result.exit_code == 0, result.output

        locks = json.loads(result.stdout)
        assert [lock["queue_name"] for lock in locks] == ["coravel-queue"]

    def test_health(self, db_path, engine):
        result = runner.invoke(app, ["health", "-d", str(db_path), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["healthy"] is True

    def test_health_unreachable(self, tmp_path):
        result = runner.invoke(app, ["health", "-d", str(tmp_path / "missing" / "q.db")])
        assert result.exit_code == 1
