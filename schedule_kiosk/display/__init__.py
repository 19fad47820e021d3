"""Display adapters for the schedule kiosk."""
from __future__ import annotations

from .base import DisplayDriver
from .mock import DEFAULT_RESOLUTION, MockDisplayDriver, create_display_driver

__all__ = [
    "DEFAULT_RESOLUTION",
    "DisplayDriver",
    "MockDisplayDriver",
    "create_display_driver",
]
