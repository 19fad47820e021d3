from __future__ import annotations

import time
from typing import Callable

import pytest

InstantFactory = Callable[..., int]


@pytest.fixture(autouse=True)
def fixed_timezone(monkeypatch: pytest.MonkeyPatch):
    """Pin local time to UTC+9 without DST so instants are predictable."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "JST-9")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def at(fixed_timezone) -> InstantFactory:
    """Build a local instant from calendar fields."""

    def build(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> int:
        return int(time.mktime((year, month, day, hour, minute, second, 0, 0, -1)))

    return build
