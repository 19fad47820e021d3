from __future__ import annotations

import os
from pathlib import Path

import pytest

from schedule_kiosk.config import ConfigError, ScheduleSettings, load_env_file, load_schedule_settings


def test_load_env_file_sets_missing_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("FOO=bar\n# comment\nBAZ = 123\n", encoding="utf-8")

    monkeypatch.delenv("FOO", raising=False)
    monkeypatch.setenv("BAZ", "keep")

    load_env_file(env_file)

    assert os.environ["FOO"] == "bar"
    assert os.environ["BAZ"] == "keep"


def test_load_env_file_is_noop_when_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    missing = tmp_path / "missing.env"
    monkeypatch.delenv("FOO", raising=False)

    load_env_file(missing)

    assert "FOO" not in os.environ


def test_invalid_line_raises(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("INVALID", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid line"):
        load_env_file(env_file)


def test_schedule_settings_defaults() -> None:
    assert load_schedule_settings({}) == ScheduleSettings()


def test_schedule_settings_from_environment() -> None:
    settings = load_schedule_settings(
        {
            "SCHEDULE_FILE": "/media/card/schedule.csv",
            "SCHEDULE_DELIMITER": "\\t",
            "SCHEDULE_ENCODING": "utf-8",
            "ONGOING_CAP": "2",
            "UPCOMING_CAP": "6",
            "REFRESH_SECONDS": "0.5",
        }
    )

    assert settings == ScheduleSettings(
        schedule_file=Path("/media/card/schedule.csv"),
        delimiter="\t",
        encoding="utf-8",
        ongoing_cap=2,
        upcoming_cap=6,
        refresh_seconds=0.5,
    )


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"ONGOING_CAP": "three"}, "ONGOING_CAP must be an integer"),
        ({"UPCOMING_CAP": "-1"}, "UPCOMING_CAP must be at least 0"),
        ({"REFRESH_SECONDS": "0"}, "REFRESH_SECONDS must be positive"),
        ({"SCHEDULE_DELIMITER": ";;"}, "single character"),
    ],
)
def test_schedule_settings_reject_malformed_values(environ: dict[str, str], message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_schedule_settings(environ)
