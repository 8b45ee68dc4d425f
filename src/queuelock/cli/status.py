"""
CLI: ``queuelock logs`` / ``locks`` / ``health`` - read-only inspection.
"""

from __future__ import annotations

import typer

from queuelock.cli.utils import load_settings, make_engine, output_dict, output_items
from queuelock.core.health import check_database
from queuelock.core.stores import SqlLockStore, SqlRunLedger


def logs(
    job: str | None = typer.Option(None, "--job", "-j", help="Filter by job name"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Max entries"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show recent run ledger entries, newest first."""
    settings = load_settings(database)
    ledger = SqlRunLedger(make_engine(settings))
    output_items(ledger.list_entries(job_name=job, limit=limit), as_json=json_out, title="Job Logs")


def locks(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the lock rows currently held."""
    settings = load_settings(database)
    store = SqlLockStore(make_engine(settings))
    output_items(store.list_locks(), as_json=json_out, title="Queue Locks")


def health(
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or SQLite path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Check database connectivity."""
    settings = load_settings(database)
    status = check_database(make_engine(settings, create=False))
    output_dict(status.to_dict(), as_json=json_out, title="Database Health")
    if not status.healthy:
        raise typer.Exit(code=1)
