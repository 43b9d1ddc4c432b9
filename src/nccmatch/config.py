"""
Per-call configuration for the matching core.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from .methods import Backend


@dataclass(slots=True)
class MatchConfig:
    """
    Knobs shared by the scanner and the matcher.

    ``workers=None`` sizes the pool to ``os.cpu_count()``. ``degenerate_fill=None``
    uses the method's own fill value for windows that cannot be normalized.
    """

    workers: int | None = None
    rows_per_task: int = 1
    backend: Backend | str = Backend.NUMPY
    degenerate_fill: float | None = None
    warn_on_degenerate: bool = False

    def __post_init__(self) -> None:
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.rows_per_task < 1:
            raise ValueError("rows_per_task must be >= 1")
        try:
            self.backend = Backend(self.backend)
        except ValueError:
            raise ValueError(f"unknown backend: {self.backend!r}") from None
        if self.degenerate_fill is not None and not math.isfinite(self.degenerate_fill):
            raise ValueError("degenerate_fill must be finite")

    @property
    def resolved_workers(self) -> int:
        if self.workers is not None:
            return self.workers
        return os.cpu_count() or 1


__all__ = ["MatchConfig"]
