import inspect
import math

import numpy as np
import pytest

from nccmatch import Backend, InvalidDimensions, MatchMethod, OutOfBounds
from nccmatch.matching import IntegralSquaredTable, PixelBuffer, WindowScorer, score_window

IMAGE = np.arange(16, dtype=np.uint8).reshape(4, 4)
TEMPLATE = np.array([[1, 2], [3, 4]], dtype=np.uint8)


@pytest.mark.parametrize(
    "method, expected",
    [
        (MatchMethod.CCORR, 124.0),
        (MatchMethod.CCORR_NORMED, 124.0 / math.sqrt(30 * 546)),
        (MatchMethod.SQDIFF, 328.0),
        (MatchMethod.SQDIFF_NORMED, 1.0),  # 328 / sqrt(30 * 546) is clamped
        (MatchMethod.CCOEFF, 9.0),
        (MatchMethod.CCOEFF_NORMED, 9.0 / math.sqrt(5 * 17)),
    ],
)
@pytest.mark.parametrize("backend", ["reference", "numpy"])
def test_window_scores(method: MatchMethod, expected: float, backend: str) -> None:
    # Window at (1, 2) is [[9, 10], [13, 14]].
    assert score_window(IMAGE, TEMPLATE, (1, 2), method, backend=backend) == pytest.approx(expected)


def test_precomputed_table_and_energy_are_used() -> None:
    table = IntegralSquaredTable.build(PixelBuffer.from_array(IMAGE))

    score = score_window(IMAGE, TEMPLATE, (1, 2), MatchMethod.CCORR_NORMED, table=table, template_energy=30.0)

    assert score == pytest.approx(124.0 / math.sqrt(30 * 546))


def test_zero_window_uses_fill_value() -> None:
    image = np.zeros((5, 5), dtype=np.uint8)
    image[4, 4] = 7
    template = np.ones((2, 2), dtype=np.uint8)

    assert score_window(image, template, (0, 0), MatchMethod.CCORR_NORMED) == 0.0
    assert score_window(image, template, (0, 0), MatchMethod.SQDIFF_NORMED) == 1.0
    assert score_window(image, template, (3, 3), MatchMethod.CCORR_NORMED) == pytest.approx(7 / math.sqrt(4 * 49))


def test_constant_window_has_no_correlation_coefficient() -> None:
    image = np.full((4, 4), 3.0)
    template = np.array([[1.0, 2.0], [3.0, 4.0]])

    assert score_window(image, template, (0, 0), MatchMethod.CCOEFF_NORMED) == 0.0


def test_custom_fill_value() -> None:
    image = PixelBuffer.from_array(np.zeros((4, 4), dtype=np.uint8))
    template = PixelBuffer.from_array(np.ones((2, 2), dtype=np.uint8))
    scorer = WindowScorer(image, template, MatchMethod.CCORR_NORMED, fill=-1.0)
    row = np.empty(scorer.output_width)

    degenerate = scorer.score_row(0, row)

    assert degenerate == 3
    assert row.tolist() == [-1.0, -1.0, -1.0]


def test_rows_match_single_window_scores() -> None:
    rng = np.random.default_rng(4)
    image = PixelBuffer.from_array(rng.random((9, 12)))
    template = PixelBuffer.from_array(rng.random((3, 4)))
    scorer = WindowScorer(image, template, MatchMethod.CCOEFF_NORMED)
    row = np.empty(scorer.output_width)

    scorer.score_row(5, row)

    expected = [scorer.score((x, 5)) for x in range(scorer.output_width)]
    np.testing.assert_allclose(row, expected, rtol=1e-12)


def test_positions_outside_the_grid_raise() -> None:
    scorer = WindowScorer(PixelBuffer.from_array(IMAGE), PixelBuffer.from_array(TEMPLATE))

    with pytest.raises(OutOfBounds):
        scorer.score((3, 0))
    with pytest.raises(OutOfBounds):
        scorer.raw_row(3)


def test_normalized_squared_difference_below_one() -> None:
    template = np.array([[8, 10], [13, 15]], dtype=np.uint8)

    score = score_window(IMAGE, template, (1, 2), MatchMethod.SQDIFF_NORMED)

    assert score == pytest.approx(2.0 / math.sqrt(558 * 546))


def test_table_from_another_image_is_rejected() -> None:
    table = IntegralSquaredTable.build(PixelBuffer.from_array(np.ones((5, 5), dtype=np.uint8)))

    with pytest.raises(InvalidDimensions):
        score_window(IMAGE, TEMPLATE, (0, 0), MatchMethod.CCORR_NORMED, table=table)


def test_single_window_and_scorer_share_default_backend() -> None:
    assert inspect.signature(score_window).parameters["backend"].default is Backend.NUMPY
    assert WindowScorer(PixelBuffer.from_array(IMAGE), PixelBuffer.from_array(TEMPLATE)).backend is Backend.NUMPY
