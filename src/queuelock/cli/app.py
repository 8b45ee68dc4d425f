"""
Root Typer application for the queuelock CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="queuelock",
    help="queuelock - one heartbeat job at a time across every instance.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from queuelock import __version__

        typer.echo(f"queuelock {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """queuelock CLI - run, schedule and inspect heartbeat jobs."""


# ── Sub-command registration ─────────────────────────────────────────────

from queuelock.cli.db import app as db_app  # noqa: E402
from queuelock.cli.jobs import run, serve  # noqa: E402
from queuelock.cli.status import health, locks, logs  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.command()(run)
app.command()(serve)
app.command()(logs)
app.command()(locks)
app.command()(health)
