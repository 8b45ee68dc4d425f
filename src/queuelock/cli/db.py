"""
CLI: ``queuelock db`` - database management commands.
"""

from __future__ import annotations

import typer

from queuelock.cli.utils import console, load_settings, make_engine

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
) -> None:
    """Create the queue_locks and job_logs tables."""
    settings = load_settings(database)
    make_engine(settings, create=True)
    console.print(f"[green]Schema ready[/green] at {settings.database_url}")
