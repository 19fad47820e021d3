"""Classification of stored events into display-ready projections."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from itertools import islice
from typing import Iterable, Iterator, List, Optional, Sequence

from ..timecodec import Instant, format_range_compact
from .records import Event

logger = logging.getLogger(__name__)

DEFAULT_ONGOING_CAP = 3
DEFAULT_UPCOMING_CAP = 4


class ErrorReason(enum.Enum):
    """Why a frame carries no projection, in order of precedence."""

    CLOCK_UNAVAILABLE = "clock_unavailable"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    NO_SCHEDULES_FOUND = "no_schedules_found"


@dataclass(frozen=True)
class Classification:
    """Capped ongoing and upcoming events for one reference instant."""

    ongoing: tuple[Event, ...]
    upcoming: tuple[Event, ...]
    ongoing_total: int
    upcoming_total: int


@dataclass(frozen=True)
class DisplayRow:
    range_label: str
    action_text: str


@dataclass(frozen=True)
class Projection:
    ongoing_rows: tuple[DisplayRow, ...]
    upcoming_rows: tuple[DisplayRow, ...]
    overflow_count: int = 0


@dataclass(frozen=True)
class KioskStatus:
    clock_ok: bool
    storage_ok: bool
    schedule_count: int


@dataclass(frozen=True)
class RenderFrame:
    """Everything the rendering surface needs for a single tick.

    Exactly one of ``projection`` and ``error`` is set. ``now`` is ``None``
    when the clock could not be read.
    """

    status: KioskStatus
    now: Optional[Instant] = None
    projection: Optional[Projection] = None
    error: Optional[ErrorReason] = None

    @property
    def healthy(self) -> bool:
        return self.error is None


class ScheduleStore:
    """Ordered event sequence replaced wholesale on every reload.

    The sequence is held as an immutable tuple and swapped in one assignment,
    so a reader always sees either the previous or the new snapshot in full.
    """

    def __init__(self) -> None:
        self._events: tuple[Event, ...] = ()
        self._loaded = False

    def reload(self, events: Iterable[Event]) -> None:
        snapshot = tuple(events)
        self._events = snapshot
        self._loaded = True
        logger.info("Schedule store reloaded with %d event(s)", len(snapshot))

    @property
    def events(self) -> tuple[Event, ...]:
        return self._events

    @property
    def loaded(self) -> bool:
        """``False`` until the first reload, even if that reload was empty."""

        return self._loaded

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)


def _check_cap(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")


def classify(
    events: Sequence[Event],
    now: Instant,
    ongoing_cap: int = DEFAULT_ONGOING_CAP,
    upcoming_cap: int = DEFAULT_UPCOMING_CAP,
) -> Classification:
    """Partition ``events`` into ongoing and upcoming sets relative to ``now``.

    Both sets keep the order of ``events`` and are cut to their cap. Events
    that have ended (or whose ``stop`` precedes ``start`` and already began)
    fall into neither set. The number of upcoming matches before capping is
    reported so callers can show how many were left out.
    """

    _check_cap("ongoing_cap", ongoing_cap)
    _check_cap("upcoming_cap", upcoming_cap)

    ongoing = [event for event in events if event.is_ongoing(now)]
    upcoming = [event for event in events if event.is_upcoming(now)]

    if len(ongoing) > ongoing_cap:
        logger.debug("Dropping %d ongoing event(s) beyond cap %d", len(ongoing) - ongoing_cap, ongoing_cap)

    return Classification(
        ongoing=tuple(islice(ongoing, ongoing_cap)),
        upcoming=tuple(islice(upcoming, upcoming_cap)),
        ongoing_total=len(ongoing),
        upcoming_total=len(upcoming),
    )


def _row(event: Event) -> DisplayRow:
    return DisplayRow(
        range_label=format_range_compact(event.start, event.stop),
        action_text=event.label,
    )


def build_projection(classification: Classification, upcoming_cap: int) -> Projection:
    """Map classified events to display rows and compute the overflow count."""

    _check_cap("upcoming_cap", upcoming_cap)
    ongoing_rows: List[DisplayRow] = [_row(event) for event in classification.ongoing]
    upcoming_rows: List[DisplayRow] = [_row(event) for event in classification.upcoming[:upcoming_cap]]
    return Projection(
        ongoing_rows=tuple(ongoing_rows),
        upcoming_rows=tuple(upcoming_rows),
        overflow_count=max(0, classification.upcoming_total - upcoming_cap),
    )


class ScheduleEngine:
    """Owns the schedule store and produces frames for the renderer."""

    def __init__(
        self,
        *,
        ongoing_cap: int = DEFAULT_ONGOING_CAP,
        upcoming_cap: int = DEFAULT_UPCOMING_CAP,
        store: ScheduleStore | None = None,
    ) -> None:
        _check_cap("ongoing_cap", ongoing_cap)
        _check_cap("upcoming_cap", upcoming_cap)
        self.ongoing_cap = ongoing_cap
        self.upcoming_cap = upcoming_cap
        self.store = store if store is not None else ScheduleStore()

    @property
    def schedule_count(self) -> int:
        return len(self.store)

    def reload(self, events: Iterable[Event]) -> None:
        self.store.reload(events)

    def classify(self, now: Instant) -> Classification:
        return classify(self.store.events, now, self.ongoing_cap, self.upcoming_cap)

    def project(self, now: Instant) -> Projection:
        return build_projection(self.classify(now), self.upcoming_cap)

    def frame(self, now: Optional[Instant], *, clock_ok: bool, storage_ok: bool) -> RenderFrame:
        """Build the render frame for one tick.

        Classification only runs when the clock produced an instant, storage is
        available and at least one event is stored.
        """

        clock_ok = clock_ok and now is not None
        status = KioskStatus(
            clock_ok=clock_ok,
            storage_ok=storage_ok,
            schedule_count=self.schedule_count,
        )

        error: Optional[ErrorReason] = None
        if not clock_ok:
            error = ErrorReason.CLOCK_UNAVAILABLE
        elif not storage_ok:
            error = ErrorReason.STORAGE_UNAVAILABLE
        elif status.schedule_count == 0:
            error = ErrorReason.NO_SCHEDULES_FOUND

        if error is not None:
            logger.debug("Suppressing classification: %s", error.value)
            return RenderFrame(status=status, now=now if clock_ok else None, error=error)

        assert now is not None
        return RenderFrame(status=status, now=now, projection=self.project(now))


__all__ = [
    "Classification",
    "DEFAULT_ONGOING_CAP",
    "DEFAULT_UPCOMING_CAP",
    "DisplayRow",
    "ErrorReason",
    "KioskStatus",
    "Projection",
    "RenderFrame",
    "ScheduleEngine",
    "ScheduleStore",
    "build_projection",
    "classify",
]
