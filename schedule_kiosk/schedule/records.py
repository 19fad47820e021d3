"""Parsing of delimited schedule files into :class:`Event` values."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from ..timecodec import UNPARSEABLE, Instant, parse_instant

logger = logging.getLogger(__name__)

#: Decoded form of the UTF-8 byte order mark ``EF BB BF``.
ENCODING_MARKER = "\ufeff"
DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8-sig"


@dataclass(frozen=True)
class Event:
    """A schedule entry active from ``start`` (inclusive) to ``stop`` (exclusive)."""

    start: Instant
    stop: Instant
    label: str

    def is_ongoing(self, now: Instant) -> bool:
        return self.start <= now < self.stop

    def is_upcoming(self, now: Instant) -> bool:
        return self.start > now

    @property
    def is_unparseable(self) -> bool:
        return self.start == UNPARSEABLE or self.stop == UNPARSEABLE


@dataclass(frozen=True)
class ParseResult:
    """Events parsed from a source plus counters for rows that needed attention.

    ``skipped_rows`` counts rejected rows (too few fields or an empty label).
    ``degraded_rows`` counts rows kept with an unparseable bound.
    """

    events: tuple[Event, ...] = ()
    skipped_rows: int = 0
    degraded_rows: int = 0


@dataclass(frozen=True)
class LoadResult:
    """Outcome of reading a :class:`ScheduleSource`."""

    events: tuple[Event, ...] = ()
    storage_ok: bool = False
    source_found: bool = False
    skipped_rows: int = 0
    degraded_rows: int = 0


def _strip_marker(value: str) -> str:
    if value.startswith(ENCODING_MARKER):
        return value[len(ENCODING_MARKER):]
    return value


def _iter_rows(text: str, delimiter: str) -> Iterable[tuple[int, List[str]]]:
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    for row in reader:
        if not row or (len(row) == 1 and not row[0].strip()):
            continue
        yield reader.line_num, row


def parse_records(
    text: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    has_header: bool = True,
) -> ParseResult:
    """Parse ``start,stop,label`` rows from ``text`` in row order.

    Args:
        text: Full content of the schedule source.
        delimiter: Single character separating the fields.
        has_header: Skip the first non-blank row when ``True``.
    Returns:
        A :class:`ParseResult`. Malformed time fields degrade to
        :data:`~schedule_kiosk.timecodec.UNPARSEABLE` and the row is kept;
        rows missing fields or a label are skipped.
    """

    if len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")

    events: List[Event] = []
    skipped = 0
    degraded = 0
    header_pending = has_header
    first_data_row = True

    for line_number, row in _iter_rows(text, delimiter):
        if header_pending:
            header_pending = False
            continue

        if first_data_row:
            first_data_row = False
            row = [_strip_marker(row[0]), *row[1:]]
            if len(row) >= 3:
                row[2] = _strip_marker(row[2])

        if len(row) < 3:
            logger.warning("Skipping line %d: expected 3 fields, found %d", line_number, len(row))
            skipped += 1
            continue

        raw_start, raw_stop, label = row[0], row[1], row[2]
        if not label:
            logger.warning("Skipping line %d: label is empty", line_number)
            skipped += 1
            continue

        event = Event(start=parse_instant(raw_start), stop=parse_instant(raw_stop), label=label)
        if event.is_unparseable:
            logger.warning(
                "Line %d has an unparseable time (start=%r, stop=%r); keeping it as instant 0",
                line_number,
                raw_start,
                raw_stop,
            )
            degraded += 1
        events.append(event)

    return ParseResult(events=tuple(events), skipped_rows=skipped, degraded_rows=degraded)


class ScheduleSource:
    """Schedule file on removable storage.

    The directory containing the file stands in for the storage medium: when it
    is missing the medium is treated as not inserted.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        encoding: str = DEFAULT_ENCODING,
        delimiter: str = DEFAULT_DELIMITER,
        has_header: bool = True,
    ) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self.delimiter = delimiter
        self.has_header = has_header

    @property
    def storage_root(self) -> Path:
        return self.path.parent

    def storage_available(self) -> bool:
        return self.storage_root.is_dir()

    def load(self) -> LoadResult:
        """Read and parse the schedule file, degrading to an empty result."""

        if not self.storage_available():
            logger.warning("Schedule storage %s is not available", self.storage_root)
            return LoadResult(storage_ok=False)

        if not self.path.is_file():
            logger.warning("Schedule file not found: %s", self.path)
            return LoadResult(storage_ok=True)

        logger.info("Loading schedule file %s", self.path)
        try:
            text = self.path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read schedule file %s: %s", self.path, exc)
            return LoadResult(storage_ok=True)

        try:
            parsed = parse_records(text, delimiter=self.delimiter, has_header=self.has_header)
        except csv.Error as exc:
            logger.warning("Unable to parse schedule file %s: %s", self.path, exc)
            return LoadResult(storage_ok=True, source_found=True)

        logger.info("Loaded %d schedule row(s) from %s", len(parsed.events), self.path)
        for index, event in enumerate(parsed.events, start=1):
            logger.debug("Schedule %d: %s", index, event.label)

        return LoadResult(
            events=parsed.events,
            storage_ok=True,
            source_found=True,
            skipped_rows=parsed.skipped_rows,
            degraded_rows=parsed.degraded_rows,
        )


__all__ = [
    "DEFAULT_DELIMITER",
    "DEFAULT_ENCODING",
    "ENCODING_MARKER",
    "Event",
    "LoadResult",
    "ParseResult",
    "ScheduleSource",
    "parse_records",
]
