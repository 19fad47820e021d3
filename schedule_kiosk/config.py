"""Helpers for loading environment variables and kiosk settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from .schedule.engine import DEFAULT_ONGOING_CAP, DEFAULT_UPCOMING_CAP
from .schedule.records import DEFAULT_DELIMITER, DEFAULT_ENCODING
from .scheduler import DEFAULT_PERIOD

__all__ = [
    "ConfigError",
    "DEFAULT_SCHEDULE_FILE",
    "ScheduleSettings",
    "env_float",
    "env_int",
    "load_env_file",
    "load_schedule_settings",
]

DEFAULT_SCHEDULE_FILE = Path("schedule.csv")


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


def load_env_file(env_file: str | Path | None = None) -> None:
    """Load environment variables from ``env_file`` if provided.

    When ``env_file`` is :data:`None`, the loader looks for a ``.env`` file in the
    current working directory. Existing environment variables are never overwritten.
    """

    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if not path.exists() or not path.is_file():
        return

    for key, value in _iter_env_entries(path):
        os.environ.setdefault(key, value)


def _iter_env_entries(path: Path) -> Iterable[tuple[str, str]]:
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigError(
                f"Invalid line in {path.name!r}: {raw_line!r}. Expected KEY=VALUE format."
            )
        key, raw_value = line.split("=", 1)
        key = key.strip()
        value = raw_value.strip().strip('"').strip("'")
        if not key:
            raise ConfigError(f"Environment variable key is missing in line: {raw_line!r}")
        yield key, value


def env_int(name: str, default: int, *, minimum: int = 0, environ: Mapping[str, str] | None = None) -> int:
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def env_float(name: str, default: float, *, environ: Mapping[str, str] | None = None) -> float:
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class ScheduleSettings:
    """Schedule source and display capacity settings."""

    schedule_file: Path = DEFAULT_SCHEDULE_FILE
    delimiter: str = DEFAULT_DELIMITER
    encoding: str = DEFAULT_ENCODING
    ongoing_cap: int = DEFAULT_ONGOING_CAP
    upcoming_cap: int = DEFAULT_UPCOMING_CAP
    refresh_seconds: float = DEFAULT_PERIOD


def load_schedule_settings(environ: Mapping[str, str] | None = None) -> ScheduleSettings:
    """Read :class:`ScheduleSettings` from the environment.

    Recognized variables are ``SCHEDULE_FILE``, ``SCHEDULE_DELIMITER``,
    ``SCHEDULE_ENCODING``, ``ONGOING_CAP``, ``UPCOMING_CAP`` and
    ``REFRESH_SECONDS``. Unset variables fall back to the defaults.
    """

    env = os.environ if environ is None else environ

    delimiter = env.get("SCHEDULE_DELIMITER") or DEFAULT_DELIMITER
    if delimiter == "\\t":
        delimiter = "\t"
    if len(delimiter) != 1:
        raise ConfigError(f"SCHEDULE_DELIMITER must be a single character, got {delimiter!r}")

    return ScheduleSettings(
        schedule_file=Path(env.get("SCHEDULE_FILE") or DEFAULT_SCHEDULE_FILE),
        delimiter=delimiter,
        encoding=env.get("SCHEDULE_ENCODING") or DEFAULT_ENCODING,
        ongoing_cap=env_int("ONGOING_CAP", DEFAULT_ONGOING_CAP, environ=env),
        upcoming_cap=env_int("UPCOMING_CAP", DEFAULT_UPCOMING_CAP, environ=env),
        refresh_seconds=env_float("REFRESH_SECONDS", DEFAULT_PERIOD, environ=env),
    )
