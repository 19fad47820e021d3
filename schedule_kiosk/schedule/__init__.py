"""Schedule parsing, storage and classification."""

from .engine import (
    Classification,
    DisplayRow,
    ErrorReason,
    KioskStatus,
    Projection,
    RenderFrame,
    ScheduleEngine,
    ScheduleStore,
    build_projection,
    classify,
)
from .records import Event, LoadResult, ParseResult, ScheduleSource, parse_records

__all__ = [
    "Classification",
    "DisplayRow",
    "ErrorReason",
    "Event",
    "KioskStatus",
    "LoadResult",
    "ParseResult",
    "Projection",
    "RenderFrame",
    "ScheduleEngine",
    "ScheduleSource",
    "ScheduleStore",
    "build_projection",
    "classify",
    "parse_records",
]
