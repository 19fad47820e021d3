"""Frame-capturing display used when no panel is attached."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Optional

from PIL import Image

from .base import DisplayDriver

DEFAULT_RESOLUTION: tuple[int, int] = (1280, 720)


@dataclass
class MockDisplayDriver(DisplayDriver):
    """Records pushed frames and optionally writes them out as PNG files.

    Identical consecutive frames are not written twice, so a once-per-second
    tick does not flood ``output_dir`` while nothing on screen changes.
    """

    resolution: tuple[int, int] = DEFAULT_RESOLUTION
    output_dir: Optional[Path] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    keep_history: bool = True
    max_history: int = 32

    def __post_init__(self) -> None:
        self._initialized = False
        self._history: list[Image.Image] = []
        self._last_frame: Optional[bytes] = None
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def initialize(self) -> None:
        if not self._initialized:
            self.logger.debug("Mock display initialized")
            self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("Mock display has not been initialized. Call initialize() first.")

    def _remember(self, image: Image.Image) -> None:
        if not self.keep_history:
            return
        self._history.append(image.copy())
        if self.max_history and len(self._history) > self.max_history:
            del self._history[: len(self._history) - self.max_history]

    def clear(self) -> None:
        self._require_initialized()
        self.logger.debug("Mock display cleared")
        blank = Image.new("RGB", self.resolution, (255, 255, 255))
        self._remember(blank)
        self._last_frame = blank.tobytes()

    def display_image(self, image: Image.Image) -> None:
        self._require_initialized()
        if image.size != self.resolution:
            raise ValueError(
                f"Image has resolution {image.size}, expected {self.resolution} for the mock display."
            )
        processed = image.convert("RGB")
        payload = processed.tobytes()
        if payload == self._last_frame:
            self.logger.debug("Frame unchanged; skipping update")
            return

        self._remember(processed)
        if self.output_dir is not None:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%fZ")
            output_path = self.output_dir / f"mock-frame-{timestamp}.png"
            processed.save(output_path)
            self.logger.debug("Saved mock frame to %s", output_path)
        self._last_frame = payload

    def sleep(self) -> None:
        if self._initialized:
            self.logger.debug("Mock display sleeping")
            self._initialized = False

    @property
    def history(self) -> list[Image.Image]:
        """Return copies of the frames pushed to the display (if enabled)."""

        return [frame.copy() for frame in self._history]

    @property
    def last_frame(self) -> Optional[bytes]:
        """Return the raw bytes of the last frame that was displayed."""

        return self._last_frame


def create_display_driver(
    *,
    resolution: tuple[int, int] = DEFAULT_RESOLUTION,
    mock_output_dir: Optional[Path] = None,
    logger: Optional[logging.Logger] = None,
) -> DisplayDriver:
    """Create the display driver for this host."""

    return MockDisplayDriver(
        resolution=resolution,
        output_dir=mock_output_dir,
        logger=logger or logging.getLogger(__name__),
    )
