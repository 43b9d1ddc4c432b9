from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
import pytest

from nccmatch import UnsupportedPixelFormat, match_template
from nccmatch.io import load_grayscale, to_grayscale


def test_load_grayscale_round_trips_png(tmp_path: Path) -> None:
    image = np.zeros((32, 40), dtype=np.uint8)
    cv2.rectangle(image, (8, 12), (20, 24), 255, -1)
    path = tmp_path / "frame0.png"
    cv2.imwrite(str(path), image)

    loaded = load_grayscale(path)

    assert loaded.shape == (32, 40)
    assert loaded.dtype == np.uint8
    assert np.array_equal(loaded, image)


def test_load_grayscale_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_grayscale(tmp_path / "missing.png")


def test_color_screenshot_is_matched_after_grayscale_conversion(tmp_path: Path) -> None:
    screen = np.zeros((60, 80, 3), dtype=np.uint8)
    cv2.circle(screen, (50, 30), 6, (40, 200, 120), thickness=-1)
    template = to_grayscale(screen[22:39, 42:59])

    result = match_template(to_grayscale(screen), template, "ccoeff_normed")

    assert result.location == (42, 22)
    assert result.best_score == pytest.approx(1.0, abs=1e-6)


def test_to_grayscale_passes_through_and_rejects() -> None:
    gray = np.zeros((4, 4), dtype=np.uint8)

    assert to_grayscale(gray) is gray
    assert to_grayscale(np.zeros((4, 4, 4), dtype=np.uint8)).shape == (4, 4)
    with pytest.raises(UnsupportedPixelFormat):
        to_grayscale(np.zeros((4, 4, 2), dtype=np.uint8))
