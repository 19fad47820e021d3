from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from schedule_kiosk.display import DEFAULT_RESOLUTION, MockDisplayDriver, create_display_driver


class TestMockDisplayDriver:
    @staticmethod
    def test_mock_records_frames_and_saves(tmp_path: Path) -> None:
        driver = MockDisplayDriver(output_dir=tmp_path)
        driver.initialize()
        driver.clear()

        frame = Image.new("RGB", driver.resolution, (255, 255, 0))
        driver.display_image(frame)

        history = driver.history
        assert len(history) == 2  # clear() adds a blank frame, then display_image
        assert history[-1].tobytes() == frame.tobytes()
        assert driver.last_frame == frame.tobytes()

        saved_files = list(tmp_path.glob("mock-frame-*.png"))
        assert len(saved_files) == 1

    @staticmethod
    def test_identical_frames_are_skipped(tmp_path: Path) -> None:
        driver = MockDisplayDriver(output_dir=tmp_path)
        driver.initialize()

        frame = Image.new("RGB", driver.resolution, (255, 255, 0))
        driver.display_image(frame)
        driver.display_image(frame.copy())

        assert len(driver.history) == 1
        assert len(list(tmp_path.glob("mock-frame-*.png"))) == 1

    @staticmethod
    def test_history_is_bounded() -> None:
        driver = MockDisplayDriver(resolution=(8, 8), max_history=3)
        driver.initialize()

        for shade in range(5):
            driver.display_image(Image.new("RGB", (8, 8), (shade, shade, shade)))

        assert [frame.getpixel((0, 0)) for frame in driver.history] == [(2, 2, 2), (3, 3, 3), (4, 4, 4)]

    @staticmethod
    def test_mock_requires_initialization() -> None:
        driver = MockDisplayDriver()

        with pytest.raises(RuntimeError):
            driver.display_image(Image.new("RGB", driver.resolution, 0))

        driver.initialize()
        driver.display_image(Image.new("RGB", driver.resolution, 0))
        driver.sleep()

        with pytest.raises(RuntimeError):
            driver.clear()

    @staticmethod
    def test_mock_validates_resolution() -> None:
        driver = MockDisplayDriver()
        driver.initialize()

        with pytest.raises(ValueError):
            driver.display_image(Image.new("RGB", (100, 100), 0))


def test_create_display_driver_returns_mock(tmp_path: Path) -> None:
    driver = create_display_driver(mock_output_dir=tmp_path / "frames")

    assert isinstance(driver, MockDisplayDriver)
    assert driver.resolution == DEFAULT_RESOLUTION
    assert (tmp_path / "frames").is_dir()
