"""Command line entry point for the schedule kiosk."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO

from .clock import Clock, CommandProcessor, StdinCommandSource, create_clock
from .config import ScheduleSettings, load_env_file, load_schedule_settings
from .display import DisplayDriver, create_display_driver
from .rendering import KioskRenderer, RendererConfig
from .schedule import ScheduleEngine, ScheduleSource
from .scheduler import Scheduler
from .timecodec import format_full

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schedule kiosk display loop")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional path to a .env file loaded before the app starts.",
    )
    parser.add_argument(
        "--schedule-file",
        type=Path,
        default=None,
        help="Schedule CSV to display (overrides SCHEDULE_FILE).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Render a single frame immediately and exit.",
    )
    parser.add_argument(
        "--immediate",
        action="store_true",
        help="Render immediately before entering the timed loop.",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop after this many ticks (runs forever by default).",
    )
    parser.add_argument(
        "--refresh-seconds",
        type=float,
        default=None,
        help="Tick period in seconds (overrides REFRESH_SECONDS).",
    )
    parser.add_argument(
        "--clock",
        choices=("system", "manual"),
        default="system",
        help="Clock backend. 'manual' starts unset until a time-set command arrives.",
    )
    parser.add_argument(
        "--no-commands",
        action="store_true",
        help="Do not read time-set commands from standard input.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Logging verbosity.",
    )

    display_group = parser.add_argument_group("Display options")
    display_group.add_argument(
        "--mock-output-dir",
        type=Path,
        default=None,
        help="Directory where the mock display writes captured frames.",
    )
    display_group.add_argument(
        "--preview-dir",
        type=Path,
        default=None,
        help="Directory where every rendered frame is also saved as PNG.",
    )

    return parser


@dataclass
class AppSettings:
    once: bool
    immediate: bool
    iterations: int | None
    schedule: ScheduleSettings
    clock: str
    commands_enabled: bool
    mock_output_dir: Path | None
    preview_dir: Path | None


class KioskRuntime:
    """Owns the lifecycle of the clock, schedule engine, renderer and display."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        scheduler_factory: Callable[..., Scheduler] = Scheduler,
        clock_factory: Callable[[str], Clock] = create_clock,
        display_factory: Callable[..., DisplayDriver] = create_display_driver,
        renderer_factory: Callable[..., KioskRenderer] = KioskRenderer,
        command_stream: TextIO | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.scheduler_factory = scheduler_factory
        self.clock_factory = clock_factory
        self.display_factory = display_factory
        self.renderer_factory = renderer_factory
        self.command_stream = command_stream
        self.logger = logger or LOGGER

        schedule = settings.schedule
        self.engine = ScheduleEngine(ongoing_cap=schedule.ongoing_cap, upcoming_cap=schedule.upcoming_cap)
        self.source = ScheduleSource(
            schedule.schedule_file,
            encoding=schedule.encoding,
            delimiter=schedule.delimiter,
        )

        self._clock: Clock | None = None
        self._display: DisplayDriver | None = None
        self._renderer: KioskRenderer | None = None
        self._commands: StdinCommandSource | None = None
        self._processor: CommandProcessor | None = None
        self._scheduler: Scheduler | None = None
        self._storage_ok = False
        self._started = False

    @property
    def clock(self) -> Clock | None:
        return self._clock

    @property
    def storage_ok(self) -> bool:
        return self._storage_ok

    def start(self) -> None:
        """Instantiate dependencies, load the schedule and prepare the loop."""

        if self._started:
            return

        try:
            self._clock = self.clock_factory(self.settings.clock)
            current = self._clock.now()
            if current is None:
                self.logger.warning("Clock is not available; send YYYY/MM/DD HH:MM:SS to set it")
            else:
                self.logger.info("Current clock time: %s", format_full(current))

            self._display = self.display_factory(mock_output_dir=self.settings.mock_output_dir, logger=self.logger)
            self._display.initialize()
            self._renderer = self.renderer_factory(RendererConfig(preview_output_dir=self.settings.preview_dir))

            self.reload_schedule()

            self._processor = CommandProcessor(self._clock, reload_callback=self.reload_schedule, logger=self.logger)
            if self.settings.commands_enabled:
                self._commands = StdinCommandSource(self.command_stream or sys.stdin)
                if self._commands.active:
                    self.logger.info("Set the clock by sending: YYYY/MM/DD HH:MM:SS (e.g. 2025/06/14 08:30:00)")

            self._scheduler = self.scheduler_factory(
                self.refresh_once,
                period=self.settings.schedule.refresh_seconds,
            )
            self._started = True
        except Exception:
            self.close()
            raise

    def run(self, *, immediate: bool = False, iterations: Optional[int] = None) -> None:
        if not self._scheduler:
            raise RuntimeError("Scheduler has not been started")
        self._scheduler.run(immediate=immediate, iterations=iterations)

    def reload_schedule(self) -> None:
        """Replace the stored schedule with a fresh read of the source."""

        result = self.source.load()
        self._storage_ok = result.storage_ok
        self.engine.reload(result.events)
        if result.skipped_rows or result.degraded_rows:
            self.logger.warning(
                "Schedule loaded with %d skipped and %d unparseable row(s)",
                result.skipped_rows,
                result.degraded_rows,
            )
        if not result.events:
            self.logger.warning("No schedules found")

    def handle_command(self, line: str) -> None:
        if self._processor is None:
            raise RuntimeError("Runtime has not been fully started")
        self._processor.handle(line)

    def refresh_once(self) -> None:
        if not self._display or not self._renderer or not self._clock:
            raise RuntimeError("Runtime has not been fully started")

        if self._commands is not None:
            for line in self._commands.poll():
                self.handle_command(line)

        self._poll_storage()

        now = self._clock.now()
        frame = self.engine.frame(now, clock_ok=now is not None, storage_ok=self._storage_ok)
        if frame.error is not None:
            self.logger.debug("Rendering degraded frame: %s", frame.error.value)

        try:
            image = self._renderer.render(frame)
        except Exception:
            self.logger.exception("Failed to render frame")
            return

        try:
            self._display.display_image(image)
        except Exception:
            self.logger.exception("Failed to push frame to display")

    def close(self) -> None:
        if self._display:
            try:
                self._display.sleep()
            except Exception:
                self.logger.exception("Error while putting display to sleep")
            finally:
                self._display = None

        if self._commands:
            self._commands.close()
            self._commands = None

        self._processor = None
        self._renderer = None
        self._scheduler = None
        self._started = False

    # Internal helpers -------------------------------------------------
    def _poll_storage(self) -> None:
        available = self.source.storage_available()
        if available and not self._storage_ok:
            self.logger.info("Schedule storage became available; reloading")
            self.reload_schedule()
        elif not available and self._storage_ok:
            self.logger.warning("Schedule storage was removed")
            self._storage_ok = False
            self.engine.reload(())


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    load_env_file(args.env_file)
    schedule = load_schedule_settings()
    if args.schedule_file is not None:
        schedule = replace(schedule, schedule_file=args.schedule_file)
    if args.refresh_seconds is not None:
        schedule = replace(schedule, refresh_seconds=args.refresh_seconds)

    return AppSettings(
        once=args.once,
        immediate=args.immediate,
        iterations=args.iterations,
        schedule=schedule,
        clock=args.clock,
        commands_enabled=not args.no_commands,
        mock_output_dir=args.mock_output_dir,
        preview_dir=args.preview_dir,
    )


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    scheduler_factory: Callable[..., Scheduler] = Scheduler,
    clock_factory: Callable[[str], Clock] = create_clock,
    display_factory: Callable[..., DisplayDriver] = create_display_driver,
    command_stream: TextIO | None = None,
) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=getattr(logging, args.log_level))

    if args.once and args.immediate:
        parser.error("--once and --immediate are mutually exclusive")
    if args.iterations is not None and args.iterations <= 0:
        parser.error("--iterations must be positive")
    if args.refresh_seconds is not None and args.refresh_seconds <= 0:
        parser.error("--refresh-seconds must be positive")

    settings = resolve_settings(args)

    runtime = KioskRuntime(
        settings=settings,
        scheduler_factory=scheduler_factory,
        clock_factory=clock_factory,
        display_factory=display_factory,
        command_stream=command_stream,
    )

    try:
        runtime.start()
        if settings.once:
            runtime.run(immediate=True, iterations=1)
        else:
            runtime.run(immediate=settings.immediate, iterations=settings.iterations)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
