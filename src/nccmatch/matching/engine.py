from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

import numpy as np

from ..config import MatchConfig
from ..methods import Backend, ExtremumKind, MatchMethod, resolve_method
from .buffer import PixelBuffer, validate_pair
from .extrema import Extrema, Match, find_extrema, find_matches
from .integral import IntegralSquaredTable, IntegralTable, template_energy
from .scanner import ParallelScanner, ScanReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatchStats:
    """
    Metadata about how a match was computed.
    """

    timings_ms: Mapping[str, float]
    degenerate_windows: int
    workers: int
    tasks: int


@dataclass(frozen=True, slots=True)
class MatchResult:
    """
    Best placement of the template, in score-grid coordinates.
    """

    best_score: float
    location: Tuple[int, int]
    kind: ExtremumKind
    method: MatchMethod
    template_size: Tuple[int, int]
    extrema: Extrema
    stats: MatchStats
    grid: np.ndarray | None = field(default=None, repr=False, compare=False)

    @property
    def center(self) -> Tuple[float, float]:
        return (
            self.location[0] + self.template_size[0] / 2.0,
            self.location[1] + self.template_size[1] / 2.0,
        )


@dataclass(slots=True)
class TemplateMatcher:
    """
    Sliding-window matcher over single-channel images.

    ``method`` accepts a ``MatchMethod``, its string value or an OpenCV
    ``cv2.TM_*`` flag.
    """

    method: MatchMethod | str | int = MatchMethod.CCORR_NORMED
    config: MatchConfig = field(default_factory=MatchConfig)

    def __post_init__(self) -> None:
        self.method = MatchMethod.parse(self.method)

    def match(self, image: np.ndarray, template: np.ndarray, keep_grid: bool = True) -> MatchResult:
        """
        Locate the best matching region.
        """
        image_buffer, template_buffer = validate_pair(image, template)
        report, timings = self._score(image_buffer, template_buffer)

        start = time.perf_counter()
        extrema = find_extrema(report.grid)
        best_score, location = extrema.best(self.method.kind)
        timings["extrema"] = (time.perf_counter() - start) * 1000.0

        logger.debug(
            "best %s %.6f at %s (precompute=%.2fms scan=%.2fms extrema=%.2fms)",
            self.method.kind.value,
            best_score,
            location,
            timings["precompute"],
            timings["scan"],
            timings["extrema"],
        )

        grid = None
        if keep_grid:
            grid = report.grid
            grid.setflags(write=False)

        return MatchResult(
            best_score=best_score,
            location=location,
            kind=self.method.kind,
            method=self.method,
            template_size=template_buffer.size,
            extrema=extrema,
            stats=MatchStats(
                timings_ms=MappingProxyType(timings),
                degenerate_windows=report.degenerate_windows,
                workers=report.workers,
                tasks=report.tasks,
            ),
            grid=grid,
        )

    def match_all(self, image: np.ndarray, template: np.ndarray, threshold: float) -> List[Match]:
        """
        Every non-overlapping placement whose score passes ``threshold``.
        """
        image_buffer, template_buffer = validate_pair(image, template)
        report, _ = self._score(image_buffer, template_buffer)
        return find_matches(report.grid, template_buffer.size, threshold, self.method.kind)

    def _score(self, image: PixelBuffer, template: PixelBuffer) -> Tuple[ScanReport, Dict[str, float]]:
        start = time.perf_counter()
        squares = sums = None
        energy = None
        if self.config.backend is not Backend.OPENCV:
            if self.method.needs_squares:
                squares = IntegralSquaredTable.build(image)
            if self.method.needs_sums:
                sums = IntegralTable.build(image)
            energy = template_energy(template)
        precompute = (time.perf_counter() - start) * 1000.0

        start = time.perf_counter()
        scanner = ParallelScanner(self.method, self.config)
        report = scanner.run(image, template, table=squares, template_energy=energy, sums=sums)
        scan = (time.perf_counter() - start) * 1000.0

        return report, {"precompute": precompute, "scan": scan}


def match_template(
    image: np.ndarray,
    template: np.ndarray,
    method: MatchMethod | str | int = MatchMethod.CCORR_NORMED,
    normalize: bool | None = None,
    *,
    config: MatchConfig | None = None,
    keep_grid: bool = True,
) -> MatchResult:
    """
    Find where ``template`` best fits inside ``image``.

    ``normalize=True`` upgrades a base method (e.g. ``CCORR``) to its
    normalized variant. The result location is the top-left corner of the
    best window as ``(x, y)``.
    """
    matcher = TemplateMatcher(
        method=resolve_method(method, normalize),
        config=config if config is not None else MatchConfig(),
    )
    return matcher.match(image, template, keep_grid=keep_grid)


__all__ = ["MatchResult", "MatchStats", "TemplateMatcher", "match_template"]
