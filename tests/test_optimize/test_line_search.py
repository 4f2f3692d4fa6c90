import math

import numpy as np
import pytest

from multiopt.optimize.abort import BrentAbortCondition, GoldenSectionAbortCondition
from multiopt.optimize.core import Classification
from multiopt.optimize.line_search import (
    BrentLineSearch,
    DownhillBracketing,
    GoldenSectionSearch,
    LineFunction,
    LineSearch,
)


def test_line_function_copies_its_buffers():
    base = np.array([1.0, 2.0])
    direction = np.array([1.0, 0.0])
    line = LineFunction(base, direction, lambda x: float(x @ x))
    base[0] = 100.0
    direction[0] = 0.0
    assert np.allclose(line.point(1.0), [2.0, 2.0])
    assert line(1.0) == pytest.approx(8.0)


def test_line_function_shape_mismatch():
    with pytest.raises(ValueError):
        LineFunction(np.zeros(2), np.zeros(3), lambda x: 0.0)


def test_bracket_around_guess():
    bracket = DownhillBracketing().bracket(lambda t: (t - 3.0) ** 2, 0.0)
    assert bracket.found
    assert bracket.a < bracket.b < bracket.c
    assert bracket.fb <= min(bracket.fa, bracket.fc)
    assert bracket.evaluations == 3


@pytest.mark.parametrize("target", [250.0, -1234.5])
def test_bracket_walks_downhill(target):
    bracket = DownhillBracketing().bracket(lambda t: (t - target) ** 2, 0.0)
    assert bracket.found
    assert bracket.a <= target <= bracket.c
    assert bracket.fb <= min(bracket.fa, bracket.fc)


def test_bracket_fails_on_monotone_function():
    bracketing = DownhillBracketing(max_evaluations=20)
    bracket = bracketing.bracket(lambda t: -t, 0.0)
    assert not bracket.found
    assert bracket.evaluations <= 20 + 2


def test_bracketing_validates_parameters():
    with pytest.raises(ValueError):
        DownhillBracketing(max_evaluations=2)
    with pytest.raises(ValueError):
        DownhillBracketing(magnifier_ratio=1.0)
    with pytest.raises(ValueError):
        DownhillBracketing(left_shift=1.0)


@pytest.mark.parametrize("target", [0.0, 0.7, -42.0, 180.0])
def test_brent_minimizes_parabola(target):
    algorithm = BrentLineSearch().create()
    algorithm.function = lambda t: (t - target) ** 2 + 1.0
    state = algorithm.find_minimum(0.0)
    assert state.success
    assert state.argmin == pytest.approx(target, abs=1e-5)
    assert state.minimum == pytest.approx(1.0)


def test_brent_non_quadratic():
    algorithm = BrentLineSearch().create()
    algorithm.function = lambda t: math.cosh(t - 1.5)
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.PROPER_RESULT
    assert state.argmin == pytest.approx(1.5, abs=1e-4)


def test_brent_reports_unknown_without_bracket():
    algorithm = BrentLineSearch(bracketing=DownhillBracketing(max_evaluations=10)).create()
    algorithm.function = lambda t: -t
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.UNKNOWN
    assert state.minimum == -state.argmin


def test_brent_evaluation_budget():
    factory = BrentLineSearch(
        abort_condition=BrentAbortCondition(tolerance=0.0, absolute_tolerance=0.0, max_evaluations=6)
    )
    algorithm = factory.create()
    algorithm.function = lambda t: abs(t - 0.3) ** 0.5
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.EVALUATION_LIMIT_EXCEEDED


def test_brent_requires_callable():
    algorithm = BrentLineSearch().create()
    with pytest.raises(RuntimeError):
        algorithm.find_minimum(0.0)
    with pytest.raises(TypeError):
        algorithm.function = 3.0


@pytest.mark.parametrize("factory", [BrentLineSearch(), GoldenSectionSearch()], ids=["brent", "golden"])
def test_line_searches_share_the_factory_interface(factory):
    assert isinstance(factory, LineSearch)
    algorithm = factory.create()
    algorithm.function = lambda t: (t + 2.0) ** 2
    state = algorithm.find_minimum(1.0)
    assert state.success
    assert state.argmin == pytest.approx(-2.0, abs=1e-5)
    assert factory.create() is not algorithm


@pytest.mark.parametrize("target", [0.0, 0.7, -42.0])
def test_golden_section_minimizes_parabola(target):
    algorithm = GoldenSectionSearch().create()
    algorithm.function = lambda t: (t - target) ** 2 + 1.0
    state = algorithm.find_minimum(0.0)
    assert state.success
    assert state.argmin == pytest.approx(target, abs=1e-5)
    assert state.minimum == pytest.approx(1.0)


def test_golden_section_non_quadratic():
    algorithm = GoldenSectionSearch().create()
    algorithm.function = lambda t: math.cosh(t - 1.5)
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.PROPER_RESULT
    assert state.argmin == pytest.approx(1.5, abs=1e-4)


def test_golden_section_spends_one_evaluation_per_iteration():
    calls = []

    def fun(t):
        calls.append(t)
        return (t - 0.3) ** 2

    abort = GoldenSectionAbortCondition(tolerance=0.0, absolute_tolerance=0.0, max_iterations=10)
    algorithm = GoldenSectionSearch(abort_condition=abort).create()
    algorithm.function = fun
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.ITERATION_LIMIT_EXCEEDED
    assert state.iterations == 10
    # three bracketing points, two interior points, one point per iteration
    assert state.evaluations == len(calls) == 3 + 2 + 10
    assert abs(state.argmin - 0.3) < 200.0 * 0.7**10


def test_golden_section_evaluation_budget():
    abort = GoldenSectionAbortCondition(tolerance=0.0, absolute_tolerance=0.0, max_evaluations=6)
    algorithm = GoldenSectionSearch(abort_condition=abort).create()
    algorithm.function = lambda t: abs(t - 0.3) ** 0.5
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.EVALUATION_LIMIT_EXCEEDED
    assert state.evaluations == 6


def test_golden_section_reports_unknown_without_bracket():
    algorithm = GoldenSectionSearch(bracketing=DownhillBracketing(max_evaluations=10)).create()
    algorithm.function = lambda t: -t
    state = algorithm.find_minimum(0.0)
    assert state.classification is Classification.UNKNOWN
