"""Default bounded payload: count to N, one tick per interval.

The heartbeat does nothing but prove that exactly one instance holds the
slot: every tick is a log line carrying the instance id, so interleaved
ticks from two instances in the merged logs would be a mutual-exclusion
violation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from queuelock.core.logging import get_logger
from queuelock.core.models import WorkOutcome
from queuelock.core.protocols import CancelSignal
from queuelock.core.settings import DEFAULT_TICK_INTERVAL_SECONDS, DEFAULT_WORK_TICKS

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class HeartbeatWork:
    """Count ``ticks`` times, sleeping ``interval_seconds`` between ticks.

    Cancellation is checked before every sleep, so a shutdown is observed
    within one interval.
    """

    def __init__(
        self,
        app_id: str,
        ticks: int = DEFAULT_WORK_TICKS,
        interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.app_id = app_id
        self.ticks = ticks
        self.interval_seconds = interval_seconds
        self._sleep = sleep

    async def __call__(
        self, queue_name: str, job_name: str, cancel: CancelSignal
    ) -> WorkOutcome:
        for number in range(self.ticks):
            if cancel.is_set():
                logger.info(
                    "work_cancelled",
                    app_id=self.app_id,
                    queue=queue_name,
                    job=job_name,
                    tick=number,
                )
                return WorkOutcome(ticks=number, cancelled=True)

            logger.info(
                "work_tick",
                app_id=self.app_id,
                queue=queue_name,
                job=job_name,
                tick=number,
            )
            await self._sleep(self.interval_seconds)

        return WorkOutcome(ticks=self.ticks)
