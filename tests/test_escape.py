import math

import numpy as np
import pytest

from mandelview.complex_number import Complex
from mandelview.escape import (
    BOUNDED,
    Bounded,
    EscapedAt,
    classification_to_index,
    escape_statistics,
    evaluate,
    index_to_classification,
)


def test_origin_is_bounded():
    assert evaluate(Complex(0.0, 0.0), 50, 2.0) == BOUNDED


def test_far_point_escapes_immediately():
    assert evaluate(Complex(2.0, 2.0), 50, 2.0) == EscapedAt(0)


@pytest.mark.parametrize("c", [Complex(3.0, 0.0), Complex(0.0, -2.5), Complex(-10.0, 10.0), Complex(1.5, 1.5)])
def test_points_outside_threshold_escape_at_zero(c):
    assert c.squared_magnitude() > 4.0
    assert evaluate(c, 50, 2.0) == EscapedAt(0)


def test_escape_index_is_first_exceeding_iteration():
    # z: 1, 2, 5 -> |2|^2 == 4 does not exceed 4, |5|^2 does.
    assert evaluate(Complex(1.0, 0.0), 50, 2.0) == EscapedAt(2)


def test_threshold_tie_does_not_escape():
    # z stays at exactly 2 + 0i after the first iterations.
    assert evaluate(Complex(-2.0, 0.0), 100, 2.0) == BOUNDED
    assert evaluate(Complex(2.0, 0.0), 100, 2.0) == EscapedAt(1)


def test_zero_budget_is_bounded():
    assert evaluate(Complex(100.0, 100.0), 0, 2.0) == BOUNDED


def test_negative_budget_is_rejected():
    with pytest.raises(ValueError):
        evaluate(Complex(0.0, 0.0), -1, 2.0)


def test_escape_index_below_budget():
    for re in np.linspace(-2.0, 0.5, 25):
        result = evaluate(Complex(float(re), 0.6), 30, 2.0)
        if isinstance(result, EscapedAt):
            assert 0 <= result.iteration < 30


def test_non_finite_input_terminates():
    assert evaluate(Complex(math.nan, 0.0), 20, 2.0) == BOUNDED
    assert evaluate(Complex(math.inf, 0.0), 20, 2.0) == EscapedAt(0)


def test_classifications_are_comparable_and_hashable():
    seen = {EscapedAt(3), EscapedAt(3), Bounded(), BOUNDED}
    assert seen == {EscapedAt(3), BOUNDED}
    assert EscapedAt(3) != EscapedAt(4)


def test_index_encoding():
    assert classification_to_index(EscapedAt(7), 10) == 7
    assert classification_to_index(BOUNDED, 10) == 10
    assert index_to_classification(7, 10) == EscapedAt(7)
    assert index_to_classification(10, 10) == BOUNDED


def test_escape_statistics():
    iterations = np.array([[0, 3, 10], [3, 10, 5]])
    stats = escape_statistics(iterations, 10)
    assert stats.bounded == 2
    assert stats.escaped == 4
    assert stats.unique_escape_indices == 3
    assert (stats.min_escape, stats.max_escape) == (0, 5)


def test_escape_statistics_all_bounded():
    stats = escape_statistics(np.full((2, 2), 10), 10)
    assert stats.escaped == 0
    assert stats.min_escape is None
    assert stats.max_escape is None
