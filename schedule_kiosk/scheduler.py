"""Scheduling utilities for aligning render ticks to a fixed period."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_PERIOD = 1.0


def next_tick_boundary(moment: datetime, period: float = DEFAULT_PERIOD) -> datetime:
    """Return the next multiple of ``period`` seconds at or after ``moment``.

    Boundaries are counted from the start of the minute containing ``moment``,
    so periods that divide 60 (1, 2, 5, 30, ...) line up with wall clock
    seconds. If ``moment`` already falls exactly on a boundary, the same
    timestamp is returned.
    """

    if period <= 0:
        raise ValueError("period must be positive")

    minute_start = moment.replace(second=0, microsecond=0)
    elapsed = (moment - minute_start).total_seconds()
    ticks = math.ceil(round(elapsed / period, 9))
    return minute_start + timedelta(seconds=ticks * period)


@dataclass
class Scheduler:
    """Run a callback once per period on aligned boundaries."""

    callback: Callable[[], None]
    period: float = DEFAULT_PERIOD
    time_provider: Callable[[], datetime] = datetime.now
    sleep_func: Callable[[float], None] = time.sleep
    _last_target: Optional[datetime] = field(default=None, init=False, repr=False)

    def run(
        self,
        *,
        immediate: bool = False,
        iterations: Optional[int] = None,
    ) -> None:
        """Run the scheduler loop.

        Args:
            immediate: If ``True`` the callback is triggered immediately before
                waiting for the next boundary.
            iterations: Optional number of iterations to execute. ``None`` runs
                indefinitely.
        """

        remaining = iterations

        if immediate:
            LOGGER.debug("Executing immediate tick before schedule")
            self.callback()
            if remaining is not None:
                remaining -= 1
                if remaining <= 0:
                    return

        while remaining is None or remaining > 0:
            target = self.wait_until_next_boundary()
            LOGGER.debug("Reached scheduled tick at %s", target.isoformat())
            self.callback()
            if remaining is not None:
                remaining -= 1

    def wait_until_next_boundary(self) -> datetime:
        """Block until the next period boundary and return its timestamp."""

        target = next_tick_boundary(self.time_provider(), self.period)
        if self._last_target is not None and target <= self._last_target:
            # Never fire twice for the same boundary.
            target = self._last_target + timedelta(seconds=self.period)
        self._last_target = target
        while True:
            now = self.time_provider()
            remaining = (target - now).total_seconds()
            if remaining <= 0:
                return target
            LOGGER.debug(
                "Sleeping %.3f seconds until next boundary at %s",
                remaining,
                target.isoformat(),
            )
            self.sleep_func(remaining)
