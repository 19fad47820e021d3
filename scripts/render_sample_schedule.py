#!/usr/bin/env python3
"""Render a preview PNG of the kiosk screen for a schedule file."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from schedule_kiosk.rendering import KioskRenderer, RendererConfig
from schedule_kiosk.schedule import ScheduleEngine, ScheduleSource, parse_records
from schedule_kiosk.timecodec import parse_instant


PREVIEWS_DIR = PROJECT_ROOT / "previews"
DEFAULT_OUTPUT = PREVIEWS_DIR / "schedule_sample.png"
SAMPLE_SCHEDULE = """start,stop,action
2025/6/8 9:00,2025/6/8 10:00,会議
2025/6/8 9:15,2025/6/8 9:45,来客対応
2025/6/8 11:00,2025/6/8 12:00,資料作成
2025/6/8 13:00,2025/6/8 13:30,電話会議
2025/6/8 14:00,2025/6/8 15:00,プレゼン
2025/6/8 16:00,2025/6/8 17:00,振り返り
2025/6/8 18:00,2025/6/8 19:00,懇親会
"""


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--schedule",
        type=Path,
        default=None,
        help="Schedule CSV to render (defaults to a built-in sample).",
    )
    parser.add_argument(
        "--now",
        type=str,
        default="2025/6/8 9:30",
        help="Reference time in YYYY/M/D H:MM format.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help="Where to write the preview PNG.",
    )
    parser.add_argument("--font", type=Path, default=None, help="Font file with Japanese glyphs.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    now = parse_instant(args.now)
    if not now:
        raise SystemExit(f"Unable to parse --now value {args.now!r}")

    if args.schedule is not None:
        events = ScheduleSource(args.schedule).load().events
    else:
        events = parse_records(SAMPLE_SCHEDULE).events

    engine = ScheduleEngine()
    engine.reload(events)
    frame = engine.frame(now, clock_ok=True, storage_ok=True)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    image = KioskRenderer(RendererConfig(font_path=args.font)).render(frame)
    image.save(args.output)

    print(f"Wrote preview to {args.output}")


if __name__ == "__main__":
    main()
