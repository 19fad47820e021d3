"""Layout constants for the landscape kiosk screen."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class LayoutMetrics:
    """Positions of the screen regions, in pixels."""

    canvas_width: int = 1280
    canvas_height: int = 720
    margin_left: int = 50
    title_top: int = 20
    clock_top: int = 70
    status_left: int = 900
    status_top: int = 20
    status_line_height: int = 35
    section_top: int = 310
    rows_top: int = 360
    row_height: int = 70
    row_label_gap: int = 30
    row_indent: int = 20
    upcoming_left: int = 690
    overflow_top: int = 670
    message_line_height: int = 40

    @property
    def ongoing_left(self) -> int:
        return self.margin_left

    def row_top(self, index: int) -> int:
        return self.rows_top + index * self.row_height


DEFAULT_LAYOUT: Final[LayoutMetrics] = LayoutMetrics()

__all__ = ["DEFAULT_LAYOUT", "LayoutMetrics"]
