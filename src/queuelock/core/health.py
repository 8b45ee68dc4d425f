"""Database health check.

Each instance can report whether it still reaches the shared store; an
instance that cannot reach it will record nothing and hold nothing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    healthy: bool
    latency_ms: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"healthy": self.healthy, "latency_ms": self.latency_ms, "error": self.error}


def check_database(engine: Engine) -> HealthStatus:
    """Run ``SELECT 1`` against *engine*."""
    start = time.perf_counter()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).scalar_one()
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return HealthStatus(healthy=False, error=str(e))
    return HealthStatus(healthy=True, latency_ms=round((time.perf_counter() - start) * 1000, 2))
