import warnings

import numpy as np
import pytest

from nccmatch import DegenerateNormalization, MatchConfig, MatchMethod
from nccmatch.matching import ParallelScanner


@pytest.mark.parametrize("image_shape, template_shape", [((10, 10), (10, 10)), ((7, 13), (1, 1)), ((9, 5), (4, 2))])
def test_grid_shape(image_shape, template_shape) -> None:
    image = np.ones(image_shape, dtype=np.uint8)
    template = np.ones(template_shape, dtype=np.uint8)

    grid = ParallelScanner(MatchMethod.CCORR_NORMED).scan(image, template)

    assert grid.shape == (image_shape[0] - template_shape[0] + 1, image_shape[1] - template_shape[1] + 1)
    assert np.allclose(grid, 1.0)


@pytest.mark.parametrize("workers, rows_per_task", [(2, 1), (3, 4), (8, 100)])
def test_threaded_scan_matches_inline_scan(workers: int, rows_per_task: int) -> None:
    rng = np.random.default_rng(9)
    image = rng.integers(0, 256, size=(33, 21), dtype=np.uint8)
    template = rng.integers(0, 256, size=(5, 4), dtype=np.uint8)

    inline = ParallelScanner(MatchMethod.CCORR_NORMED, MatchConfig(workers=1)).scan(image, template)
    threaded = ParallelScanner(
        MatchMethod.CCORR_NORMED, MatchConfig(workers=workers, rows_per_task=rows_per_task)
    ).scan(image, template)

    assert np.array_equal(inline, threaded)


def test_report_counts_tasks_and_degenerate_windows() -> None:
    image = np.zeros((6, 6), dtype=np.uint8)
    image[0, 0] = 1
    template = np.ones((2, 2), dtype=np.uint8)

    report = ParallelScanner(MatchMethod.CCORR_NORMED, MatchConfig(workers=2, rows_per_task=2)).run(image, template)

    assert report.tasks == 3
    assert report.workers == 2
    assert report.degenerate_windows == 24
    assert report.grid[0, 0] == pytest.approx(0.5)


def test_degenerate_windows_can_warn() -> None:
    image = np.zeros((4, 4), dtype=np.uint8)
    template = np.ones((2, 2), dtype=np.uint8)
    scanner = ParallelScanner(MatchMethod.CCORR_NORMED, MatchConfig(workers=1, warn_on_degenerate=True))

    with pytest.warns(DegenerateNormalization):
        grid = scanner.scan(image, template)

    assert np.all(grid == 0.0)


def test_opencv_backend_scans_whole_grid() -> None:
    rng = np.random.default_rng(12)
    image = rng.integers(0, 256, size=(20, 24), dtype=np.uint8)
    template = image[4:9, 10:16].copy()

    grid = ParallelScanner(MatchMethod.CCORR_NORMED, MatchConfig(backend="opencv")).scan(image, template)

    assert grid.shape == (16, 19)
    assert grid.dtype == np.float64
    assert grid[4, 10] == pytest.approx(1.0, abs=1e-4)


@pytest.mark.parametrize("method, fill", [(MatchMethod.CCORR_NORMED, 0.0), (MatchMethod.SQDIFF_NORMED, 1.0)])
def test_float_zero_block_is_scored_without_numeric_warnings(method: MatchMethod, fill: float) -> None:
    rng = np.random.default_rng(6)
    image = rng.random((60, 60)) * 1000.0
    image[20:40, 30:60] = 0.0
    template = rng.random((5, 5)) * 1000.0

    with warnings.catch_warnings(), np.errstate(invalid="raise", divide="raise"):
        warnings.simplefilter("error")
        report = ParallelScanner(method, MatchConfig(workers=1)).run(image, template)

    assert np.all(np.isfinite(report.grid))
    assert np.all(report.grid[20:36, 30:56] == fill)
    assert report.degenerate_windows == 16 * 26
