"""Renderer for composing the kiosk schedule screen."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from PIL import Image, ImageDraw, ImageFont

from ..schedule.engine import DisplayRow, ErrorReason, KioskStatus, Projection, RenderFrame
from ..timecodec import format_full
from .layout import DEFAULT_LAYOUT, LayoutMetrics

Color = tuple[int, int, int]

TITLE = "スケジュール表示"
ONGOING_HEADING = "【進行中の予定】"
UPCOMING_HEADING = "【今後の予定】"
NO_ONGOING = "現在進行中の予定はありません"
BULLET = "・"

ERROR_MESSAGES: dict[ErrorReason, tuple[str, ...]] = {
    ErrorReason.CLOCK_UNAVAILABLE: (
        "RTCエラー",
        "シリアルで時刻設定してください",
        "例: 2025/06/14 08:30:00",
    ),
    ErrorReason.STORAGE_UNAVAILABLE: ("SDカードを確認してください",),
    ErrorReason.NO_SCHEDULES_FOUND: (
        "スケジュールファイルを確認",
        "・schedule.csvが存在するか",
        "・CSV形式が正しいか",
    ),
}


def _load_font(path_candidates: Sequence[Path], size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for candidate in path_candidates:
        if candidate and candidate.exists():
            return ImageFont.truetype(str(candidate), size=size)
    return ImageFont.load_default(size=size)


def _default_font_candidates() -> List[Path]:
    names = [
        "NotoSansCJK-Regular.ttc",
        "NotoSansCJKjp-Regular.otf",
        "NotoSansJP-Regular.ttf",
        "ipag.ttf",
        "Hiragino Sans GB.ttc",
    ]
    search_dirs = [
        Path("/usr/share/fonts/opentype/noto"),
        Path("/usr/share/fonts/noto-cjk"),
        Path("/usr/share/fonts/truetype/noto"),
        Path("/usr/share/fonts/opentype/ipafont-gothic"),
        Path("/System/Library/Fonts"),
        Path("/Library/Fonts"),
        Path.home() / ".fonts",
    ]
    return [directory / name for name in names for directory in search_dirs]


def _preview_stem(frame: RenderFrame) -> str:
    if frame.now is None:
        return "no-clock"
    return time.strftime("%Y%m%d-%H%M%S", time.localtime(frame.now))


def overflow_text(count: int) -> str:
    return f"...他 {count} 件"


@dataclass
class RendererConfig:
    """Configuration values and font management for the renderer."""

    layout: LayoutMetrics = DEFAULT_LAYOUT
    font_path: Path | None = None
    preview_output_dir: Path | None = None
    background_color: Color = (255, 255, 0)
    text_color: Color = (0, 0, 0)
    ok_color: Color = (0, 128, 0)
    error_color: Color = (255, 0, 0)
    warning_color: Color = (255, 165, 0)
    ongoing_color: Color = (255, 0, 0)
    upcoming_color: Color = (0, 0, 255)
    time_range_color: Color = (128, 0, 128)
    muted_color: Color = (128, 128, 128)
    title_font_size: int = 40
    clock_font_size: int = 96
    status_font_size: int = 28
    heading_font_size: int = 48
    range_font_size: int = 32
    label_font_size: int = 40
    overflow_font_size: int = 28
    error_font_size: int = 64

    def __post_init__(self) -> None:
        self._fonts: dict[int, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}
        if self.preview_output_dir is not None:
            self.preview_output_dir = Path(self.preview_output_dir)
            self.preview_output_dir.mkdir(parents=True, exist_ok=True)

    def _font_candidates(self) -> List[Path]:
        candidates: List[Path] = []
        if self.font_path is not None:
            candidates.append(Path(self.font_path))
        candidates.extend(_default_font_candidates())
        return candidates

    def font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if size not in self._fonts:
            self._fonts[size] = _load_font(self._font_candidates(), size)
        return self._fonts[size]


class KioskRenderer:
    """Compose the schedule screen for a :class:`RenderFrame`."""

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()

    @property
    def size(self) -> tuple[int, int]:
        layout = self.config.layout
        return layout.canvas_width, layout.canvas_height

    def render(self, frame: RenderFrame, *, preview_name: str | None = None) -> Image.Image:
        """Render ``frame`` into an RGB image.

        Args:
            frame: Status plus either a projection or an error reason.
            preview_name: Optional file name stem used when preview mode is
                enabled. Defaults to the frame time.
        Returns:
            A Pillow image the size of the configured canvas.
        """

        cfg = self.config
        image = Image.new("RGB", self.size, color=cfg.background_color)
        draw = ImageDraw.Draw(image)

        self._draw_header(draw, frame)
        self._draw_status(draw, frame.status)
        if frame.projection is not None:
            self._draw_projection(draw, frame.projection)
        elif frame.error is not None:
            self._draw_error(draw, frame.error)

        if cfg.preview_output_dir is not None:
            name = preview_name or _preview_stem(frame)
            image.save(cfg.preview_output_dir / f"{name}.png")

        return image

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    def _draw_header(self, draw: ImageDraw.ImageDraw, frame: RenderFrame) -> None:
        cfg = self.config
        layout = cfg.layout
        draw.text(
            (layout.margin_left, layout.title_top),
            TITLE,
            font=cfg.font(cfg.title_font_size),
            fill=cfg.text_color,
        )

        if frame.now is not None:
            clock_text = format_full(frame.now)
            color = cfg.text_color
        else:
            clock_text = "RTC未接続"
            color = cfg.error_color
        draw.text(
            (layout.margin_left, layout.clock_top),
            f"現在時刻:\n {clock_text}",
            font=cfg.font(cfg.clock_font_size),
            fill=color,
        )

    def _draw_status(self, draw: ImageDraw.ImageDraw, status: KioskStatus) -> None:
        cfg = self.config
        layout = cfg.layout
        font = cfg.font(cfg.status_font_size)
        lines = [
            ("RTC:OK" if status.clock_ok else "RTC:NG", cfg.ok_color if status.clock_ok else cfg.error_color),
            ("SDカード:OK" if status.storage_ok else "SDカード:NG", cfg.ok_color if status.storage_ok else cfg.error_color),
        ]
        if status.schedule_count > 0:
            lines.append((f"スケジュール:{status.schedule_count}件", cfg.ok_color))

        for index, (text, color) in enumerate(lines):
            y = layout.status_top + index * layout.status_line_height
            draw.text((layout.status_left, y), text, font=font, fill=color)

    def _draw_projection(self, draw: ImageDraw.ImageDraw, projection: Projection) -> None:
        cfg = self.config
        layout = cfg.layout
        heading_font = cfg.font(cfg.heading_font_size)

        draw.text((layout.ongoing_left, layout.section_top), ONGOING_HEADING, font=heading_font, fill=cfg.ongoing_color)
        if projection.ongoing_rows:
            self._draw_rows(draw, projection.ongoing_rows, layout.ongoing_left + layout.row_indent)
        else:
            draw.text(
                (layout.ongoing_left, layout.rows_top),
                NO_ONGOING,
                font=cfg.font(cfg.label_font_size),
                fill=cfg.text_color,
            )

        draw.text((layout.upcoming_left, layout.section_top), UPCOMING_HEADING, font=heading_font, fill=cfg.upcoming_color)
        self._draw_rows(draw, projection.upcoming_rows, layout.upcoming_left + layout.row_indent)

        if projection.overflow_count > 0:
            draw.text(
                (layout.upcoming_left + layout.row_indent, layout.overflow_top),
                overflow_text(projection.overflow_count),
                font=cfg.font(cfg.overflow_font_size),
                fill=cfg.muted_color,
            )

    def _draw_rows(self, draw: ImageDraw.ImageDraw, rows: Sequence[DisplayRow], left: int) -> None:
        cfg = self.config
        layout = cfg.layout
        range_font = cfg.font(cfg.range_font_size)
        label_font = cfg.font(cfg.label_font_size)
        for index, row in enumerate(rows):
            top = layout.row_top(index)
            draw.text((left, top), row.range_label, font=range_font, fill=cfg.time_range_color)
            draw.text(
                (left, top + layout.row_label_gap),
                BULLET + row.action_text,
                font=label_font,
                fill=cfg.text_color,
            )

    def _draw_error(self, draw: ImageDraw.ImageDraw, reason: ErrorReason) -> None:
        cfg = self.config
        layout = cfg.layout
        color = cfg.warning_color if reason is ErrorReason.NO_SCHEDULES_FOUND else cfg.error_color
        headline, *details = ERROR_MESSAGES[reason]
        draw.text(
            (layout.margin_left, layout.section_top),
            headline,
            font=cfg.font(cfg.error_font_size),
            fill=color,
        )
        detail_font = cfg.font(cfg.label_font_size)
        for index, line in enumerate(details):
            y = layout.rows_top + index * layout.message_line_height
            draw.text((layout.margin_left, y), line, font=detail_font, fill=color)


__all__ = ["ERROR_MESSAGES", "KioskRenderer", "RendererConfig", "overflow_text"]
