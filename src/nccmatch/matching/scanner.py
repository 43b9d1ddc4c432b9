from __future__ import annotations

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

import numpy as np

from ..config import MatchConfig
from ..errors import DegenerateNormalization
from ..methods import Backend, MatchMethod
from .backends import opencv_score_grid
from .buffer import PixelBuffer, output_shape, validate_pair
from .integral import IntegralSquaredTable, IntegralTable, TemplateStats
from .scorer import WindowScorer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScanReport:
    """
    Bookkeeping from one scan, returned next to the grid.
    """

    grid: np.ndarray
    degenerate_windows: int
    workers: int
    tasks: int


class ParallelScanner:
    """
    Fork-join scan of the score grid, one band of output rows per task.

    Each task owns a disjoint slice of rows in the preallocated grid; the
    image, template and tables are only read. Work is never split below a
    single output row.
    """

    def __init__(self, method: MatchMethod | str | int = MatchMethod.CCORR_NORMED, config: MatchConfig | None = None) -> None:
        self.method = MatchMethod.parse(method)
        self.config = config if config is not None else MatchConfig()

    def scan(
        self,
        image: np.ndarray | PixelBuffer,
        template: np.ndarray | PixelBuffer,
        table: IntegralSquaredTable | None = None,
        template_energy: float | None = None,
    ) -> np.ndarray:
        """
        Score every valid window; returns a grid of shape ``(H - Ht + 1, W - Wt + 1)``.
        """
        return self.run(image, template, table=table, template_energy=template_energy).grid

    def run(
        self,
        image: np.ndarray | PixelBuffer,
        template: np.ndarray | PixelBuffer,
        table: IntegralSquaredTable | None = None,
        template_energy: float | None = None,
        sums: IntegralTable | None = None,
    ) -> ScanReport:
        image, template = validate_pair(image, template)
        rows, cols = output_shape(image, template)
        fill = self.method.default_fill if self.config.degenerate_fill is None else self.config.degenerate_fill

        if self.config.backend is Backend.OPENCV:
            return self._run_opencv(image, template, fill)

        scorer = WindowScorer(
            image,
            template,
            self.method,
            squares=table,
            sums=sums,
            stats=TemplateStats.from_buffer(template, energy=template_energy),
            backend=self.config.backend,
            fill=fill,
        )
        grid = np.empty((rows, cols), dtype=np.float64)

        band = self.config.rows_per_task
        starts = list(range(0, rows, band))
        workers = min(self.config.resolved_workers, len(starts))

        def scan_band(start: int) -> int:
            degenerate = 0
            for y in range(start, min(start + band, rows)):
                degenerate += scorer.score_row(y, grid[y])
            return degenerate

        logger.debug(
            "scanning %dx%d grid with %s/%s: %d tasks on %d workers",
            cols,
            rows,
            self.method.value,
            self.config.backend.value,
            len(starts),
            workers,
        )

        if workers <= 1:
            counts: List[int] = [scan_band(start) for start in starts]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                counts = list(executor.map(scan_band, starts))

        degenerate = sum(counts)
        self._report_degenerate(degenerate, rows * cols, fill)
        return ScanReport(grid=grid, degenerate_windows=degenerate, workers=workers, tasks=len(starts))

    def _run_opencv(self, image: PixelBuffer, template: PixelBuffer, fill: float) -> ScanReport:
        grid = opencv_score_grid(image.data, template.data, self.method)
        invalid = ~np.isfinite(grid)
        degenerate = int(np.count_nonzero(invalid))
        if degenerate:
            grid[invalid] = fill
        self._report_degenerate(degenerate, grid.size, fill)
        return ScanReport(grid=grid, degenerate_windows=degenerate, workers=1, tasks=1)

    def _report_degenerate(self, degenerate: int, total: int, fill: float) -> None:
        if not degenerate:
            return
        logger.debug("%d of %d windows could not be normalized; scored as %s", degenerate, total, fill)
        if self.config.warn_on_degenerate:
            warnings.warn(
                DegenerateNormalization(
                    f"{degenerate} of {total} windows had a non-positive normalization denominator"
                ),
                stacklevel=3,
            )


__all__ = ["ParallelScanner", "ScanReport"]
