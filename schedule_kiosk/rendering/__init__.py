"""Composition of kiosk screen images from render frames."""

from .layout import DEFAULT_LAYOUT, LayoutMetrics
from .renderer import KioskRenderer, RendererConfig

__all__ = [
    "DEFAULT_LAYOUT",
    "KioskRenderer",
    "LayoutMetrics",
    "RendererConfig",
]
