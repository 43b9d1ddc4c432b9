"""
Kernels computing the raw sum of products between the template and image windows.

``reference`` is the plain double loop over the template footprint; ``numpy``
vectorizes one output row at a time; ``opencv`` hands the whole grid to
``cv2.matchTemplate``.
"""

from __future__ import annotations

from typing import List, Sequence

import cv2
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from ..methods import MatchMethod


def reference_raw_window(
    image_rows: Sequence[Sequence[float]],
    template_rows: Sequence[Sequence[float]],
    x: int,
    y: int,
) -> float:
    total = 0.0
    for dy, template_row in enumerate(template_rows):
        image_row = image_rows[y + dy]
        for dx, value in enumerate(template_row):
            total += image_row[x + dx] * value
    return total


def reference_raw_row(
    image_rows: Sequence[Sequence[float]],
    template_rows: Sequence[Sequence[float]],
    y: int,
    count: int,
) -> np.ndarray:
    values: List[float] = [reference_raw_window(image_rows, template_rows, x, y) for x in range(count)]
    return np.asarray(values, dtype=np.float64)


def numpy_raw_window(image: np.ndarray, template: np.ndarray, x: int, y: int) -> float:
    height, width = template.shape
    window = image[y : y + height, x : x + width]
    return float(np.einsum("ij,ij->", window, template))


def numpy_raw_row(image: np.ndarray, template: np.ndarray, y: int, count: int) -> np.ndarray:
    height, width = template.shape
    # View only; no (count, height, width) copy is materialized.
    windows = sliding_window_view(image[y : y + height, : count - 1 + width], (height, width))[0]
    return np.einsum("xij,ij->x", windows, template)


def opencv_score_grid(image: np.ndarray, template: np.ndarray, method: MatchMethod) -> np.ndarray:
    """
    Full score grid from ``cv2.matchTemplate``; OpenCV accepts only uint8 and float32.
    """
    if image.dtype != np.uint8:
        image = image.astype(np.float32)
        template = template.astype(np.float32)
    result = cv2.matchTemplate(image, template, method.opencv_flag)
    return result.astype(np.float64)


__all__ = [
    "numpy_raw_row",
    "numpy_raw_window",
    "opencv_score_grid",
    "reference_raw_row",
    "reference_raw_window",
]
