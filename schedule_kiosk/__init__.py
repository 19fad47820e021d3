"""Top-level package for the schedule kiosk display application."""

from __future__ import annotations

from .schedule import Event, ScheduleEngine, classify, parse_records
from .scheduler import Scheduler, next_tick_boundary

__all__ = [
    "__version__",
    "Event",
    "ScheduleEngine",
    "Scheduler",
    "classify",
    "next_tick_boundary",
    "parse_records",
]

__version__ = "0.1.0"
