"""Tests for structured logging configuration."""

import json
import logging

import pytest
import structlog

from queuelock.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_json_output_carries_service_and_context(self, capsys, restore_logging):
        configure_logging(level="INFO", json_format=True, service="queuelock-test")
        with LogContext(app_id="instance-a", queue="hangfire-queue"):
            get_logger("test").info("lock_acquired", job="HeartbeatJob")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "lock_acquired"
        assert data["service.name"] == "queuelock-test"
        assert data["app_id"] == "instance-a"
        assert data["queue"] == "hangfire-queue"
        assert data["job"] == "HeartbeatJob"
        assert data["log.level"] == "info"
        assert "@timestamp" in data

    def test_level_filters(self, capsys, restore_logging):
        configure_logging(level="WARNING", json_format=True)
        get_logger("test").info("quiet")
        assert "quiet" not in capsys.readouterr().out


class TestContext:
    def test_log_context_unbinds_on_exit(self):
        bind_context(outer="kept")
        with LogContext(queue="q", job="j"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["queue"] == "q"
            assert ctx["outer"] == "kept"
        ctx = structlog.contextvars.get_contextvars()
        assert "queue" not in ctx
        assert ctx["outer"] == "kept"

    @pytest.mark.asyncio
    async def test_async_log_context(self):
        async with LogContext(log_id=3):
            assert structlog.contextvars.get_contextvars()["log_id"] == 3
        assert "log_id" not in structlog.contextvars.get_contextvars()

    def test_unbind_and_clear(self):
        bind_context(a=1, b=2)
        unbind_context("a")
        assert structlog.contextvars.get_contextvars() == {"b": 2}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
