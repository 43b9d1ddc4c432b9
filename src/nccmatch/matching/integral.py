"""
Summed-area tables and template statistics precomputed once per match call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import OutOfBounds
from .buffer import PixelBuffer

# Relative residue left by float prefix-sum differences over all-zero windows.
_CANCELLATION_EPS = 1e-12


def accumulator_dtype(buffer: PixelBuffer) -> np.dtype:
    """
    ``int64`` keeps 8-bit sums exact; floats accumulate in ``float64``.
    """
    return np.dtype(np.int64) if buffer.is_integer else np.dtype(np.float64)


class IntegralTable:
    """
    Zero-padded summed-area table: ``sums[y, x]`` covers ``[0, x) x [0, y)``.
    """

    def __init__(self, sums: np.ndarray) -> None:
        if sums.ndim != 2 or sums.shape[0] < 1 or sums.shape[1] < 1:
            raise ValueError("integral table must be a non-empty 2-D array")
        self.sums = np.array(sums, copy=True)
        self.sums.setflags(write=False)

    @classmethod
    def build(cls, image: PixelBuffer) -> IntegralTable:
        return cls(_summed_area(image.data.astype(accumulator_dtype(image))))

    @property
    def width(self) -> int:
        """Width of the source image (one less than the table)."""
        return int(self.sums.shape[1]) - 1

    @property
    def height(self) -> int:
        """Height of the source image (one less than the table)."""
        return int(self.sums.shape[0]) - 1

    def rectangle_sum(self, top_left: Tuple[int, int], width: int, height: int) -> float:
        """
        Sum over the ``width`` x ``height`` rectangle anchored at ``top_left``.

        Raises ``OutOfBounds`` when the rectangle leaves the table's domain.
        """
        x, y = top_left
        if width < 0 or height < 0 or x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise OutOfBounds(
                f"rectangle at ({x}, {y}) of size {width}x{height} exceeds "
                f"table domain {self.width}x{self.height}"
            )
        s = self.sums
        total = s[y + height, x + width] - s[y, x + width] - s[y + height, x] + s[y, x]
        return total.item()

    def row_sums(self, y: int, width: int, height: int, count: int, x: int = 0) -> np.ndarray:
        """
        Rectangle sums for ``count`` consecutive windows on row ``y``, starting at column ``x``.
        """
        if count < 1 or x < 0 or y < 0 or y + height > self.height or x + count - 1 + width > self.width:
            raise OutOfBounds(
                f"{count} windows of {width}x{height} at ({x}, {y}) exceed "
                f"table domain {self.width}x{self.height}"
            )
        top = self.sums[y]
        bottom = self.sums[y + height]
        right = slice(x + width, x + width + count)
        left = slice(x, x + count)
        totals = bottom[right] - top[right] - bottom[left] + top[left]
        return totals.astype(np.float64)


class IntegralSquaredTable(IntegralTable):
    """
    Summed-area table over squared intensities.
    """

    @classmethod
    def build(cls, image: PixelBuffer) -> IntegralSquaredTable:
        values = image.data.astype(accumulator_dtype(image))
        return cls(_summed_area(values * values))

    def rectangle_sum_of_squares(self, top_left: Tuple[int, int], width: int, height: int) -> float:
        return self.rectangle_sum(top_left, width, height)

    def row_sums(self, y: int, width: int, height: int, count: int, x: int = 0) -> np.ndarray:
        """
        Like ``IntegralTable.row_sums`` but never negative.

        On float tables the four-corner difference of an all-zero window leaves
        round-off residue; anything below ``_CANCELLATION_EPS`` times the largest
        corner on the row is reported as zero.
        """
        totals = np.maximum(super().row_sums(y, width, height, count, x=x), 0.0)
        if self.sums.dtype.kind == "f":
            scale = float(self.sums[y + height, x + count - 1 + width])
            totals[totals <= _CANCELLATION_EPS * scale] = 0.0
        return totals


def _summed_area(values: np.ndarray) -> np.ndarray:
    # Two prefix sums evaluate t[y,x] = v[y-1,x-1] + t[y-1,x] + t[y,x-1] - t[y-1,x-1].
    height, width = values.shape
    sums = np.zeros((height + 1, width + 1), dtype=values.dtype)
    np.cumsum(values, axis=0, out=sums[1:, 1:])
    np.cumsum(sums[1:, 1:], axis=1, out=sums[1:, 1:])
    return sums


def template_energy(template: PixelBuffer) -> float:
    """
    Sum of squared template intensities.
    """
    values = template.data.astype(accumulator_dtype(template))
    return float(np.sum(values * values))


@dataclass(frozen=True, slots=True)
class TemplateStats:
    """
    Template quantities reused by every window.
    """

    energy: float
    total: float
    count: int

    @classmethod
    def from_buffer(cls, template: PixelBuffer, energy: float | None = None) -> TemplateStats:
        values = template.data.astype(accumulator_dtype(template))
        return cls(
            energy=template_energy(template) if energy is None else float(energy),
            total=float(np.sum(values)),
            count=template.width * template.height,
        )

    @property
    def mean(self) -> float:
        return self.total / self.count

    @property
    def centered_energy(self) -> float:
        """Sum of squared deviations from the template mean, clamped at zero."""
        return max(self.energy - self.total * self.total / self.count, 0.0)


__all__ = [
    "IntegralSquaredTable",
    "IntegralTable",
    "TemplateStats",
    "accumulator_dtype",
    "template_energy",
]
