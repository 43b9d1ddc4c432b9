from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from ..methods import ExtremumKind


@dataclass(frozen=True, slots=True)
class Extrema:
    """
    Global minimum and maximum of a score grid, with ``(x, y)`` locations.
    """

    min_value: float
    min_loc: Tuple[int, int]
    max_value: float
    max_loc: Tuple[int, int]

    def best(self, kind: ExtremumKind) -> Tuple[float, Tuple[int, int]]:
        if kind is ExtremumKind.MINIMUM:
            return self.min_value, self.min_loc
        return self.max_value, self.max_loc


@dataclass(frozen=True, slots=True)
class Match:
    location: Tuple[int, int]
    score: float


def find_extrema(grid: np.ndarray) -> Extrema:
    """
    Locate both extremes; ties resolve to the first position in row-major order.
    """
    if grid.ndim != 2 or grid.size == 0:
        raise ValueError("score grid must be a non-empty 2-D array")
    cols = grid.shape[1]
    # argmin/argmax return the first occurrence over the C-ordered flattening.
    min_index = int(np.argmin(grid))
    max_index = int(np.argmax(grid))
    return Extrema(
        min_value=float(grid.flat[min_index]),
        min_loc=(min_index % cols, min_index // cols),
        max_value=float(grid.flat[max_index]),
        max_loc=(max_index % cols, max_index // cols),
    )


def find_matches(
    grid: np.ndarray,
    template_size: Tuple[int, int],
    threshold: float,
    kind: ExtremumKind = ExtremumKind.MAXIMUM,
) -> List[Match]:
    """
    Collect every placement whose score passes ``threshold``.

    Candidates are visited in row-major order. A candidate lying within one
    template footprint of the most recently kept overlapping match replaces it
    only when its score is better; otherwise it starts a new match.
    """
    if grid.ndim != 2:
        raise ValueError("score grid must be a 2-D array")
    width, height = template_size
    if width < 1 or height < 1:
        raise ValueError("template_size must be positive")

    if kind is ExtremumKind.MINIMUM:
        passing = grid <= threshold

        def better(a: float, b: float) -> bool:
            return a < b
    else:
        passing = grid >= threshold

        def better(a: float, b: float) -> bool:
            return a > b

    matches: List[Match] = []
    for y, x in np.argwhere(passing):
        x, y = int(x), int(y)
        value = float(grid[y, x])
        for index in range(len(matches) - 1, -1, -1):
            mx, my = matches[index].location
            if abs(mx - x) < width and abs(my - y) < height:
                if better(value, matches[index].score):
                    matches[index] = Match(location=(x, y), score=value)
                break
        else:
            matches.append(Match(location=(x, y), score=value))
    return matches


__all__ = ["Extrema", "Match", "find_extrema", "find_matches"]
