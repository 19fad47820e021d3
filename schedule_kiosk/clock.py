"""Real-time clock adapters and the line-oriented time-set command channel."""

from __future__ import annotations

import codecs
import enum
import logging
import os
import selectors
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, TextIO

from .timecodec import Instant, TimeCommandError, format_full, parse_time_set_command

LOGGER = logging.getLogger(__name__)

RELOAD_COMMAND = "reload"
MAX_COMMAND_LENGTH = 64


class Clock(ABC):
    """Source of the reference instant used for classification."""

    @abstractmethod
    def now(self) -> Optional[Instant]:
        """Return the current instant, or ``None`` when the clock is unavailable."""

    @abstractmethod
    def set(self, instant: Instant) -> bool:
        """Set the clock to ``instant``. Return ``True`` on success."""

    @property
    def available(self) -> bool:
        """Whether the clock device is present and accepts commands.

        A present clock may still fail an individual read, in which case
        :meth:`now` returns ``None``.
        """

        return True


class SystemClock(Clock):
    """Software clock derived from the host clock plus an adjustable offset.

    Setting the clock does not touch the host time; it only shifts the offset
    applied to :func:`time.time`.
    """

    def __init__(self, *, time_func: Callable[[], float] = time.time) -> None:
        self._time_func = time_func
        self._offset = 0

    def now(self) -> Optional[Instant]:
        return int(self._time_func()) + self._offset

    def set(self, instant: Instant) -> bool:
        self._offset = instant - int(self._time_func())
        return True


@dataclass
class ManualClock(Clock):
    """Clock whose value only changes when told to."""

    current: Optional[Instant] = None
    connected: bool = True
    accept_set: bool = True

    def now(self) -> Optional[Instant]:
        if not self.connected:
            return None
        return self.current

    @property
    def available(self) -> bool:
        return self.connected

    def set(self, instant: Instant) -> bool:
        if not self.connected or not self.accept_set:
            return False
        self.current = instant
        return True

    def advance(self, seconds: int) -> None:
        if self.current is not None:
            self.current += seconds


def create_clock(kind: str = "system", *, start: Optional[Instant] = None) -> Clock:
    if kind == "system":
        return SystemClock()
    if kind == "manual":
        return ManualClock(current=start)
    raise ValueError(f"Unknown clock kind: {kind!r}")


class CommandOutcome(enum.Enum):
    CLOCK_SET = "clock_set"
    RELOADED = "reloaded"
    PARSE_ERROR = "parse_error"
    CLOCK_UNAVAILABLE = "clock_unavailable"
    SET_FAILED = "set_failed"


class CommandProcessor:
    """Apply command lines to the clock or trigger a schedule reload."""

    def __init__(
        self,
        clock: Clock,
        *,
        reload_callback: Callable[[], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.clock = clock
        self.reload_callback = reload_callback
        self.logger = logger or LOGGER

    def handle(self, line: str) -> CommandOutcome:
        command = line.strip()
        if command.lower() == RELOAD_COMMAND and self.reload_callback is not None:
            self.logger.info("Reloading schedule on request")
            self.reload_callback()
            return CommandOutcome.RELOADED

        try:
            instant = parse_time_set_command(command)
        except TimeCommandError as exc:
            self.logger.error("%s", exc)
            return CommandOutcome.PARSE_ERROR

        if not self.clock.available:
            self.logger.error("Clock is not available; ignoring time-set command")
            return CommandOutcome.CLOCK_UNAVAILABLE

        if not self.clock.set(instant):
            self.logger.error("Failed to set clock to %s", format_full(instant))
            return CommandOutcome.SET_FAILED

        self.logger.info("Clock set to %s", format_full(instant))
        return CommandOutcome.CLOCK_SET


@dataclass
class LineBuffer:
    """Accumulate characters into complete lines terminated by CR or LF.

    A partial line that grows past ``max_length`` is discarded along with
    everything up to the next terminator.
    """

    max_length: int = MAX_COMMAND_LENGTH
    pending: List[str] = field(default_factory=list)
    discarding: bool = False

    def feed(self, chars: str) -> List[str]:
        lines: List[str] = []
        for char in chars:
            if char in "\r\n":
                if self.pending:
                    lines.append("".join(self.pending))
                    self.pending.clear()
                self.discarding = False
            elif self.discarding:
                continue
            elif len(self.pending) >= self.max_length:
                LOGGER.warning("Discarding command line longer than %d characters", self.max_length)
                self.pending.clear()
                self.discarding = True
            else:
                self.pending.append(char)
        return lines


class StdinCommandSource:
    """Poll a stream for command lines without blocking the render loop.

    Bytes are read straight from the stream's file descriptor once the
    selector reports it readable, so a partial line never blocks a tick.
    """

    def __init__(self, stream: TextIO, *, chunk_size: int = 256, encoding: str = "utf-8") -> None:
        self.stream = stream
        self.chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = LineBuffer()
        self._selector: selectors.BaseSelector | None = None
        self._fd: int | None = None
        selector = selectors.DefaultSelector()
        try:
            fd = stream.fileno()
            selector.register(fd, selectors.EVENT_READ)
        except (ValueError, OSError, AttributeError) as exc:
            selector.close()
            LOGGER.debug("Command stream is not pollable (%s); commands disabled", exc)
        else:
            self._fd = fd
            self._selector = selector

    @property
    def active(self) -> bool:
        return self._selector is not None

    def poll(self) -> Iterator[str]:
        """Yield every complete line that is ready right now."""

        while self._selector is not None and self._fd is not None and self._selector.select(timeout=0):
            data = os.read(self._fd, self.chunk_size)
            if not data:
                LOGGER.debug("Command stream reached EOF")
                yield from self._buffer.feed(self._decoder.decode(b"", final=True) + "\n")
                self.close()
                return
            yield from self._buffer.feed(self._decoder.decode(data))

    def close(self) -> None:
        if self._selector is not None:
            self._selector.close()
            self._selector = None
        self._fd = None


__all__ = [
    "Clock",
    "CommandOutcome",
    "CommandProcessor",
    "LineBuffer",
    "MAX_COMMAND_LENGTH",
    "ManualClock",
    "RELOAD_COMMAND",
    "StdinCommandSource",
    "SystemClock",
    "create_clock",
]
