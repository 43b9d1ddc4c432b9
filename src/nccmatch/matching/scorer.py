from __future__ import annotations

from typing import Tuple

import numpy as np

from ..errors import InvalidDimensions, OutOfBounds
from ..methods import Backend, MatchMethod
from .backends import numpy_raw_row, numpy_raw_window, reference_raw_row, reference_raw_window
from .buffer import PixelBuffer, output_shape, validate_pair
from .integral import IntegralSquaredTable, IntegralTable, TemplateStats

# Relative floor below which a window's centered energy counts as zero.
_VARIANCE_EPS = 1e-12


class WindowScorer:
    """
    Scores template placements against one image.

    Holds only read-only state, so a single instance may be shared by every
    worker of a scan. Windows whose normalization denominator is not positive
    receive ``fill`` instead of a quotient.
    """

    def __init__(
        self,
        image: PixelBuffer,
        template: PixelBuffer,
        method: MatchMethod | str | int = MatchMethod.CCORR_NORMED,
        *,
        squares: IntegralSquaredTable | None = None,
        sums: IntegralTable | None = None,
        stats: TemplateStats | None = None,
        backend: Backend | str = Backend.NUMPY,
        fill: float | None = None,
    ) -> None:
        self.method = MatchMethod.parse(method)
        self.backend = Backend(backend)
        self.image = image
        self.template = template

        if squares is None and self.method.needs_squares:
            squares = IntegralSquaredTable.build(image)
        if sums is None and self.method.needs_sums:
            sums = IntegralTable.build(image)
        for table in (squares, sums):
            if table is not None and (table.width, table.height) != image.size:
                raise InvalidDimensions(
                    f"integral table covers {table.width}x{table.height} but image is {image.width}x{image.height}"
                )
        self.squares = squares
        self.sums = sums
        self.stats = stats if stats is not None else TemplateStats.from_buffer(template)
        self.fill = self.method.default_fill if fill is None else float(fill)
        self.output_height, self.output_width = output_shape(image, template)

        self._image = image.data.astype(np.float64)
        self._template = template.data.astype(np.float64)
        if self.backend is Backend.REFERENCE:
            self._image_rows = self._image.tolist()
            self._template_rows = self._template.tolist()

    def raw(self, top_left: Tuple[int, int]) -> float:
        """
        Sum of elementwise products between the template and the window at ``top_left``.
        """
        x, y = self._check_position(top_left)
        if self.backend is Backend.REFERENCE:
            return reference_raw_window(self._image_rows, self._template_rows, x, y)
        return numpy_raw_window(self._image, self._template, x, y)

    def raw_row(self, y: int) -> np.ndarray:
        if not 0 <= y < self.output_height:
            raise OutOfBounds(f"row {y} outside score grid of height {self.output_height}")
        if self.backend is Backend.REFERENCE:
            return reference_raw_row(self._image_rows, self._template_rows, y, self.output_width)
        return numpy_raw_row(self._image, self._template, y, self.output_width)

    def score(self, top_left: Tuple[int, int]) -> float:
        x, y = self._check_position(top_left)
        raw = np.array([self.raw((x, y))], dtype=np.float64)
        scores, _ = self._finish(raw, x, y)
        return float(scores[0])

    def score_row(self, y: int, out: np.ndarray) -> int:
        """
        Write every score of output row ``y`` into ``out``.

        Returns the number of windows that fell back to the fill value.
        """
        scores, degenerate = self._finish(self.raw_row(y), 0, y)
        out[...] = scores
        return degenerate

    def _finish(self, raw: np.ndarray, x: int, y: int) -> Tuple[np.ndarray, int]:
        method = self.method
        stats = self.stats
        count = raw.shape[0]
        height, width = self.template.height, self.template.width

        window_squares = None
        if method.needs_squares:
            window_squares = self.squares.row_sums(y, width, height, count, x=x)

        if method.base is MatchMethod.CCORR:
            numerator = raw
        elif method.base is MatchMethod.SQDIFF:
            numerator = np.maximum(window_squares - 2.0 * raw + stats.energy, 0.0)
        else:
            window_sums = self.sums.row_sums(y, width, height, count, x=x)
            numerator = raw - window_sums * (stats.total / stats.count)

        if not method.normalized:
            return numerator, 0

        if method.base is MatchMethod.CCOEFF:
            window_energy = np.maximum(window_squares - window_sums * window_sums / stats.count, 0.0)
            window_energy[window_energy <= _VARIANCE_EPS * window_squares] = 0.0
            template_energy = stats.centered_energy
            if template_energy <= _VARIANCE_EPS * stats.energy:
                template_energy = 0.0
        else:
            window_energy = window_squares
            template_energy = stats.energy

        denominator = np.sqrt(template_energy * window_energy)
        valid = denominator > 0
        scores = np.full(count, self.fill, dtype=np.float64)
        np.divide(numerator, denominator, out=scores, where=valid)
        if method is MatchMethod.SQDIFF_NORMED:
            # Bounded to [0, 1] like OpenCV; the fill of 1.0 is the worst score.
            np.minimum(scores, 1.0, out=scores, where=valid)
        return scores, int(count - np.count_nonzero(valid))

    def _check_position(self, top_left: Tuple[int, int]) -> Tuple[int, int]:
        x, y = int(top_left[0]), int(top_left[1])
        if not (0 <= x < self.output_width and 0 <= y < self.output_height):
            raise OutOfBounds(
                f"window at ({x}, {y}) outside score grid {self.output_width}x{self.output_height}"
            )
        return x, y


def score_window(
    image: np.ndarray | PixelBuffer,
    template: np.ndarray | PixelBuffer,
    top_left: Tuple[int, int],
    method: MatchMethod | str | int = MatchMethod.CCORR_NORMED,
    table: IntegralSquaredTable | None = None,
    template_energy: float | None = None,
    backend: Backend | str = Backend.NUMPY,
) -> float:
    """
    Score a single placement of ``template`` with its top-left corner at ``top_left``.
    """
    image_buffer, template_buffer = validate_pair(image, template)
    scorer = WindowScorer(
        image_buffer,
        template_buffer,
        method,
        squares=table,
        stats=TemplateStats.from_buffer(template_buffer, energy=template_energy),
        backend=backend,
    )
    return scorer.score(top_left)


__all__ = ["WindowScorer", "score_window"]
