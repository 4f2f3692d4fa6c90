import numpy as np
import pytest

from multiopt.optimize.abort import (
    BrentAbortCondition,
    GoldenSectionAbortCondition,
    LevenbergMarquardtAbortCondition,
    NelderMeadAbortCondition,
    PowellAbortCondition,
    PraxisAbortCondition,
)


def test_powell_abort_condition_relative_test():
    abort = PowellAbortCondition(tolerance=1e-6, absolute_tolerance=0.0)
    assert abort.is_satisfied(1.0, 1.0 - 1e-8)
    assert not abort.is_satisfied(1.0, 0.9)
    assert abort.is_satisfied(0.0, 0.0)


def test_powell_abort_condition_absolute_floor():
    abort = PowellAbortCondition(tolerance=1e-10, absolute_tolerance=1e-20)
    assert abort.is_satisfied(1e-22, 0.0)
    assert not abort.is_satisfied(1e-18, 0.0)


def test_nelder_mead_abort_condition():
    abort = NelderMeadAbortCondition(tolerance=1e-5)
    assert abort.is_satisfied(1.0, 1.0 + 1e-7)
    assert not abort.is_satisfied(1.0, 1.1)


def test_defaults():
    lm = LevenbergMarquardtAbortCondition()
    assert lm.tau == 1e-3
    assert lm.max_evaluations == 5000
    assert PowellAbortCondition().max_iterations == 1000
    assert NelderMeadAbortCondition().required_accepted_points == 5
    assert BrentAbortCondition().interval_tolerance(0.0) == pytest.approx(1e-10)
    assert PraxisAbortCondition().tolerance == np.finfo(float).eps
    assert PraxisAbortCondition().max_iterations == 10000


@pytest.mark.parametrize(
    "factory, kwargs",
    [
        (PowellAbortCondition, {"tolerance": -1.0}),
        (PowellAbortCondition, {"max_iterations": 0}),
        (LevenbergMarquardtAbortCondition, {"tolerance2": -1e-3}),
        (LevenbergMarquardtAbortCondition, {"tau": 0.0}),
        (LevenbergMarquardtAbortCondition, {"max_evaluations": 1.5}),
        (NelderMeadAbortCondition, {"required_accepted_points": 0}),
        (BrentAbortCondition, {"absolute_tolerance": float("nan")}),
        (GoldenSectionAbortCondition, {"tolerance": -1e-8}),
        (PraxisAbortCondition, {"required_accepted_points": 0}),
        (PraxisAbortCondition, {"max_evaluations": 0}),
    ],
)
def test_invalid_abort_conditions_are_rejected(factory, kwargs):
    with pytest.raises(ValueError):
        factory(**kwargs)


def test_abort_conditions_are_frozen():
    abort = PowellAbortCondition()
    with pytest.raises(AttributeError):
        abort.tolerance = 1.0


def test_golden_section_abort_condition():
    abort = GoldenSectionAbortCondition(tolerance=1e-6, absolute_tolerance=0.0)
    assert abort.is_satisfied(1.0, 1.0 + 1e-7, 1.0 + 2e-7, 1.0 + 1e-6)
    assert not abort.is_satisfied(1.0, 1.1, 1.2, 1.3)
    assert GoldenSectionAbortCondition().is_satisfied(0.0, 1e-11, 2e-11, 5e-11)
