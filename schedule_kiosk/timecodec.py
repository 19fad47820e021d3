"""Conversion between schedule date-time strings and epoch instants.

Instants are plain ``int`` seconds since the epoch and carry local-time
semantics: parsing goes through :func:`time.mktime` and formatting through
:func:`time.localtime`, so the host timezone (and its DST rules) applies.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime
from typing import Final

LOGGER = logging.getLogger(__name__)

Instant = int

#: Returned by :func:`parse_instant` when the text cannot be scanned.
UNPARSEABLE: Final[Instant] = 0

RANGE_SEPARATOR: Final[str] = "～"

_INT = r"\s*([+-]?\d+)(?!\d)"
_SCHEDULE_PATTERN = re.compile(_INT + "/" + _INT + "/" + _INT + _INT + ":" + _INT + "(?::" + _INT + ")?")
_COMMAND_PATTERN = re.compile(r"(\d{4})/(\d{2})/(\d{2}) (\d{2}):(\d{2}):(\d{2})")

__all__ = [
    "Instant",
    "ParseError",
    "RANGE_SEPARATOR",
    "TimeCommandError",
    "UNPARSEABLE",
    "format_full",
    "format_range_compact",
    "parse_instant",
    "parse_time_set_command",
]


class ParseError(ValueError):
    """Raised when a date-time value does not follow the expected format."""


class TimeCommandError(ParseError):
    """Raised when a clock time-set command line is malformed."""


def _mktime(year: int, month: int, day: int, hour: int, minute: int, second: int) -> Instant:
    # mktime normalizes out-of-range fields (month 13 -> January next year).
    return int(time.mktime((year, month, day, hour, minute, second, 0, 0, -1)))


def parse_instant(text: str) -> Instant:
    """Parse ``YYYY/M/D H:MM`` (optionally ``:SS``) into a local instant.

    Fields are scanned positionally and are not range checked. Text that does
    not yield the five required integers, or that describes an instant the
    platform cannot represent, degrades to :data:`UNPARSEABLE`.
    """

    match = _SCHEDULE_PATTERN.match(text)
    if match is None:
        LOGGER.debug("Unable to scan date-time value %r", text)
        return UNPARSEABLE

    year, month, day, hour, minute = (int(value) for value in match.groups()[:5])
    second = int(match.group(6)) if match.group(6) is not None else 0
    try:
        return _mktime(year, month, day, hour, minute, second)
    except (OverflowError, ValueError) as exc:
        LOGGER.debug("Date-time value %r is out of range: %s", text, exc)
        return UNPARSEABLE


def format_full(instant: Instant) -> str:
    """Render ``instant`` as ``YYYY/MM/DD HH:MM:SS`` in local time."""

    t = time.localtime(instant)
    return (
        f"{t.tm_year:04d}/{t.tm_mon:02d}/{t.tm_mday:02d} "
        f"{t.tm_hour:02d}:{t.tm_min:02d}:{t.tm_sec:02d}"
    )


def format_range_compact(start: Instant, stop: Instant) -> str:
    """Render the hour and minute of both bounds, e.g. ``09:00～10:00``."""

    begin = time.localtime(start)
    end = time.localtime(stop)
    return (
        f"{begin.tm_hour:02d}:{begin.tm_min:02d}{RANGE_SEPARATOR}"
        f"{end.tm_hour:02d}:{end.tm_min:02d}"
    )


def parse_time_set_command(line: str) -> Instant:
    """Parse a ``YYYY/MM/DD HH:MM:SS`` clock command into a local instant.

    Unlike :func:`parse_instant` every field is required, widths are fixed
    and the value must name a real calendar date and time.
    """

    cleaned = line.strip()
    match = _COMMAND_PATTERN.fullmatch(cleaned)
    if match is None:
        raise TimeCommandError(
            f"Invalid time-set command {cleaned!r}. Expected YYYY/MM/DD HH:MM:SS, "
            "e.g. 2025/06/14 08:30:00."
        )

    fields = [int(value) for value in match.groups()]
    try:
        datetime(*fields)
    except ValueError as exc:
        raise TimeCommandError(f"Invalid date or time in command {cleaned!r}: {exc}") from exc

    try:
        return _mktime(*fields)
    except (OverflowError, ValueError) as exc:
        raise TimeCommandError(f"Time {cleaned!r} cannot be represented on this host") from exc
