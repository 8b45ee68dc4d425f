"""
CLI utility helpers - settings, wiring and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from enum import Enum
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from sqlalchemy.engine import Engine

from queuelock.coordination import HeartbeatWork, JobRunner, LockCoordinator
from queuelock.core.errors import ConfigError
from queuelock.core.orm import create_queuelock_engine, init_schema
from queuelock.core.settings import QueueLockSettings, get_settings
from queuelock.core.stores import SqlLockStore, SqlRunLedger

console = Console()
err_console = Console(stderr=True)


# ── Settings / wiring ────────────────────────────────────────────────────


def database_url(database: str | None) -> str | None:
    """``--database`` takes either a SQLAlchemy URL or a SQLite file path."""
    if database is None:
        return None
    if "://" in database:
        return database
    return f"sqlite:///{database}"


def load_settings(database: str | None = None, **overrides: Any) -> QueueLockSettings:
    """Settings from the environment plus non-``None`` CLI overrides."""
    url = database_url(database)
    if url is not None:
        overrides["database_url"] = url
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        return get_settings(**overrides) if overrides else get_settings()
    except ConfigError as e:
        err_console.print(f"[bold red]Invalid configuration[/bold red]: {e.cause}")
        raise typer.Exit(code=2) from e


def make_engine(settings: QueueLockSettings, *, create: bool = True) -> Engine:
    engine = create_queuelock_engine(settings.database_url, echo=settings.database_echo)
    if create:
        init_schema(engine)
    return engine


def make_runner(settings: QueueLockSettings, engine: Engine) -> JobRunner:
    """Wire a JobRunner against the SQL stores described by *settings*."""
    coordinator = LockCoordinator(
        SqlLockStore(engine), max_age_minutes=settings.lock_max_age_minutes
    )
    work = HeartbeatWork(
        settings.app_id,
        ticks=settings.work_ticks,
        interval_seconds=settings.tick_interval_seconds,
    )
    return JobRunner(coordinator, SqlRunLedger(engine), settings.app_id, work=work)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def _cell(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if value is None:
        return ""
    return str(value)


def output_items(items: list[Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of dataclasses/dicts as JSON or a Rich table."""
    if as_json:
        console.print_json(json.dumps([_to_dict(i) for i in items], default=_cell))
        return
    if not items:
        console.print("[dim]No items.[/dim]")
        return

    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        table.add_row(*(_cell(v) for v in _to_dict(item).values()))
    console.print(table)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as JSON or key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=_cell))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {escape(_cell(v))}", soft_wrap=True)
