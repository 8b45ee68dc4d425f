"""
CLI: ``queuelock run`` / ``queuelock serve`` - execute heartbeat attempts.
"""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import typer

from queuelock.cli.utils import (
    console,
    err_console,
    load_settings,
    make_engine,
    make_runner,
    output_dict,
)
from queuelock.core.errors import categorize_error
from queuelock.core.logging import configure_logging
from queuelock.scheduling import HeartbeatTrigger, ThreadTriggerBackend


@contextmanager
def cancel_on_signals(event: threading.Event) -> Iterator[threading.Event]:
    """Set *event* on SIGINT/SIGTERM while the block runs."""

    def _handler(signum: int, _frame: object) -> None:
        console.print(f"[yellow]Received {signal.Signals(signum).name}, shutting down...[/yellow]")
        event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    try:
        yield event
    finally:
        for sig, handler in previous.items():
            # None: the previous handler was not installed from Python.
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


def wait_for_shutdown(stop: threading.Event) -> None:
    """Block until *stop* is set."""
    while not stop.wait(0.5):
        pass


def run(
    queue: str = typer.Argument(..., help="Queue name, e.g. hangfire-queue"),
    job: str | None = typer.Option(None, "--job", "-j", help="Job name"),
    ticks: int | None = typer.Option(None, "--ticks", help="Number of work ticks"),
    interval: float | None = typer.Option(None, "--interval", help="Seconds between ticks"),
    app_id: str | None = typer.Option(None, "--app-id", help="Instance identity"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run one attempt of JOB on QUEUE now."""
    settings = load_settings(
        database, work_ticks=ticks, tick_interval_seconds=interval, app_id=app_id
    )
    configure_logging(settings.log_level, json_format=settings.log_format == "json")
    runner = make_runner(settings, make_engine(settings))

    cancel = threading.Event()
    with cancel_on_signals(cancel):
        try:
            result = asyncio.run(runner.run(queue, job or settings.job_name, cancel))
        except Exception as e:
            err_console.print(
                f"[bold red]Job failed[/bold red] ({categorize_error(e).value}): "
                f"{type(e).__name__}: {e}"
            )
            raise typer.Exit(code=1) from e

    output_dict(result.to_dict(), as_json=json_out, title="Run Result")


def serve(
    queues: list[str] | None = typer.Option(None, "--queue", "-q", help="Queue(s) to trigger"),
    job: str | None = typer.Option(None, "--job", "-j", help="Job name"),
    every: float | None = typer.Option(None, "--every", help="Seconds between attempts"),
    run_now: bool = typer.Option(False, "--run-now", help="Attempt immediately on start"),
    app_id: str | None = typer.Option(None, "--app-id", help="Instance identity"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
) -> None:
    """Trigger the heartbeat job periodically until interrupted."""
    settings = load_settings(database, trigger_interval_seconds=every, app_id=app_id)
    configure_logging(settings.log_level, json_format=settings.log_format == "json")
    runner = make_runner(settings, make_engine(settings))

    triggers = [
        HeartbeatTrigger(
            runner,
            queue_name,
            job or settings.job_name,
            backend=ThreadTriggerBackend(fire_immediately=run_now),
            interval_seconds=settings.trigger_interval_seconds,
        )
        for queue_name in (queues or settings.queues)
    ]

    stop = threading.Event()
    with cancel_on_signals(stop):
        for trigger in triggers:
            trigger.start()
        console.print(
            f"[green]Serving[/green] {', '.join(t.queue_name for t in triggers)} "
            f"as {settings.app_id} (every {settings.trigger_interval_seconds}s)"
        )
        try:
            wait_for_shutdown(stop)
        finally:
            for trigger in triggers:
                trigger.stop()

    for trigger in triggers:
        stats = trigger.get_stats()
        console.print(
            f"{trigger.queue_name}: {stats.attempts} attempt(s), "
            f"{stats.completed} completed, {stats.exited} exited, {stats.failed} failed"
        )
