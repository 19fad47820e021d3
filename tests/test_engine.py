from __future__ import annotations

import pytest

from schedule_kiosk.schedule import (
    DisplayRow,
    ErrorReason,
    Event,
    ScheduleEngine,
    ScheduleStore,
    build_projection,
    classify,
    parse_records,
)
from schedule_kiosk.timecodec import UNPARSEABLE

NOW = 1_749_342_600  # 2025-06-08 09:30 at UTC+9
HOUR = 3600


def _event(start_offset: int, stop_offset: int, label: str = "event") -> Event:
    return Event(start=NOW + start_offset, stop=NOW + stop_offset, label=label)


def test_empty_schedule_classifies_to_nothing() -> None:
    engine = ScheduleEngine()
    engine.reload([])

    classification = engine.classify(NOW)
    frame = engine.frame(NOW, clock_ok=True, storage_ok=True)

    assert classification.ongoing == ()
    assert classification.upcoming == ()
    assert frame.status.schedule_count == 0
    assert frame.error is ErrorReason.NO_SCHEDULES_FOUND
    assert frame.projection is None


def test_meeting_in_progress_projects_ongoing_row() -> None:
    engine = ScheduleEngine()
    engine.reload(parse_records("start,stop,action\n2025/6/8 9:00,2025/6/8 10:00,会議\n").events)

    projection = engine.project(NOW)

    assert projection.ongoing_rows == (DisplayRow(range_label="09:00～10:00", action_text="会議"),)
    assert projection.upcoming_rows == ()
    assert projection.overflow_count == 0


def test_meeting_ending_now_is_neither_ongoing_nor_upcoming() -> None:
    events = parse_records("start,stop,action\n2025/6/8 9:00,2025/6/8 10:00,会議\n").events

    classification = classify(events, NOW + 30 * 60)

    assert classification.ongoing == ()
    assert classification.upcoming == ()


def test_start_boundary_is_inclusive_and_stop_exclusive() -> None:
    starts_now = _event(0, HOUR, "starts")
    ends_now = _event(-HOUR, 0, "ends")

    classification = classify([starts_now, ends_now], NOW)

    assert classification.ongoing == (starts_now,)
    assert classification.upcoming == ()


def test_upcoming_overflow_keeps_source_order() -> None:
    events = [_event(offset * HOUR, offset * HOUR + 600, f"e{offset}") for offset in (6, 1, 5, 2, 4, 3)]

    classification = classify(events, NOW, ongoing_cap=3, upcoming_cap=4)
    projection = build_projection(classification, upcoming_cap=4)

    assert [event.label for event in classification.upcoming] == ["e6", "e1", "e5", "e2"]
    assert classification.upcoming_total == 6
    assert len(projection.upcoming_rows) == 4
    assert projection.overflow_count == 2


def test_ongoing_beyond_cap_is_dropped_without_overflow() -> None:
    events = [_event(-offset * 60, HOUR, f"o{offset}") for offset in range(1, 6)]

    classification = classify(events, NOW, ongoing_cap=3, upcoming_cap=4)
    projection = build_projection(classification, upcoming_cap=4)

    assert [event.label for event in classification.ongoing] == ["o1", "o2", "o3"]
    assert classification.ongoing_total == 5
    assert len(projection.ongoing_rows) == 3
    assert projection.overflow_count == 0


def test_unparseable_start_is_invisible() -> None:
    events = parse_records("start,stop,action\nsoon,2025/6/8 8:00,会議\n").events

    classification = classify(events, NOW)

    assert events[0].start == UNPARSEABLE
    assert classification.ongoing == ()
    assert classification.upcoming == ()


def test_inverted_interval_is_never_ongoing() -> None:
    future_inverted = _event(HOUR, -HOUR, "future")
    past_inverted = _event(-HOUR, -2 * HOUR, "past")

    classification = classify([future_inverted, past_inverted], NOW)

    assert classification.ongoing == ()
    assert classification.upcoming == (future_inverted,)


@pytest.mark.parametrize("now_offset", [-3 * HOUR, -HOUR, -1, 0, 1, HOUR, 90 * 60, 3 * HOUR])
def test_classification_partitions_every_event(now_offset: int) -> None:
    events = [
        _event(-2 * HOUR, -HOUR),
        _event(-HOUR, HOUR),
        _event(0, 0),
        _event(HOUR, 2 * HOUR),
        _event(2 * HOUR, HOUR),
        Event(start=UNPARSEABLE, stop=UNPARSEABLE, label="bad"),
    ]
    now = NOW + now_offset

    classification = classify(events, now, ongoing_cap=len(events), upcoming_cap=len(events))
    ongoing = {id(event) for event in classification.ongoing}
    upcoming = {id(event) for event in classification.upcoming}
    past = [event for event in events if not event.is_ongoing(now) and not event.is_upcoming(now)]

    assert not ongoing & upcoming
    assert len(ongoing) + len(upcoming) + len(past) == len(events)


@pytest.mark.parametrize("ongoing_cap, upcoming_cap", [(0, 0), (1, 1), (3, 4), (10, 10)])
def test_caps_bound_projection(ongoing_cap: int, upcoming_cap: int) -> None:
    events = [_event(-60, HOUR)] * 5 + [_event(HOUR, 2 * HOUR)] * 7

    classification = classify(events, NOW, ongoing_cap, upcoming_cap)
    projection = build_projection(classification, upcoming_cap)

    assert len(projection.ongoing_rows) <= ongoing_cap
    assert len(projection.upcoming_rows) <= upcoming_cap
    assert projection.overflow_count == max(0, 7 - upcoming_cap)


@pytest.mark.parametrize("cap", [-1, 1.5, True])
def test_invalid_caps_are_rejected(cap) -> None:
    with pytest.raises(ValueError):
        classify([], NOW, ongoing_cap=cap)
    with pytest.raises(ValueError):
        ScheduleEngine(upcoming_cap=cap)


def test_classify_does_not_mutate_input() -> None:
    events = [_event(2 * HOUR, 3 * HOUR), _event(HOUR, 2 * HOUR), _event(-HOUR, HOUR)]
    snapshot = list(events)

    first = classify(events, NOW)
    second = classify(events, NOW)

    assert events == snapshot
    assert first == second


class TestScheduleStore:
    @staticmethod
    def test_reload_replaces_snapshot_wholesale() -> None:
        store = ScheduleStore()
        assert not store.loaded

        store.reload([_event(0, HOUR, "old")])
        held = store.events
        store.reload([_event(HOUR, 2 * HOUR, "new-1"), _event(2 * HOUR, 3 * HOUR, "new-2")])

        assert [event.label for event in held] == ["old"]
        assert [event.label for event in store.events] == ["new-1", "new-2"]
        assert len(store) == 2

    @staticmethod
    def test_empty_reload_marks_store_loaded() -> None:
        store = ScheduleStore()
        store.reload([_event(0, HOUR)])

        store.reload([])

        assert store.loaded
        assert len(store) == 0

    @staticmethod
    def test_reload_copies_source_sequence() -> None:
        source = [_event(0, HOUR)]
        store = ScheduleStore()
        store.reload(source)

        source.append(_event(HOUR, 2 * HOUR))

        assert len(store) == 1

    @staticmethod
    def test_engine_shares_injected_empty_store() -> None:
        store = ScheduleStore()
        engine = ScheduleEngine(store=store)

        store.reload([_event(0, HOUR), _event(HOUR, 2 * HOUR)])

        assert engine.store is store
        assert engine.schedule_count == 2


class TestFrames:
    @staticmethod
    def _engine() -> ScheduleEngine:
        engine = ScheduleEngine(ongoing_cap=3, upcoming_cap=4)
        engine.reload([_event(-HOUR, HOUR, "now"), _event(HOUR, 2 * HOUR, "later")])
        return engine

    def test_healthy_frame_carries_projection(self) -> None:
        frame = self._engine().frame(NOW, clock_ok=True, storage_ok=True)

        assert frame.healthy
        assert frame.now == NOW
        assert frame.status.schedule_count == 2
        assert frame.projection is not None
        assert [row.action_text for row in frame.projection.ongoing_rows] == ["now"]
        assert [row.action_text for row in frame.projection.upcoming_rows] == ["later"]

    def test_missing_clock_suppresses_classification(self) -> None:
        frame = self._engine().frame(None, clock_ok=True, storage_ok=False)

        assert frame.error is ErrorReason.CLOCK_UNAVAILABLE
        assert frame.now is None
        assert frame.projection is None
        assert frame.status.clock_ok is False

    def test_storage_error_takes_precedence_over_empty_schedule(self) -> None:
        engine = ScheduleEngine()
        engine.reload([])

        frame = engine.frame(NOW, clock_ok=True, storage_ok=False)

        assert frame.error is ErrorReason.STORAGE_UNAVAILABLE
        assert frame.status.storage_ok is False
