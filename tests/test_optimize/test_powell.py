import numpy as np
import pytest

from multiopt.convex.regions import BoxRegion
from multiopt.optimize import (
    Classification,
    GoldenSectionSearch,
    PowellAbortCondition,
    PowellOptimizer,
)


def rosenbrock(x: np.ndarray) -> float:
    return float((1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2)


def rotated_quadratic(x: np.ndarray) -> float:
    d = x - np.array([1.0, -2.0])
    return float(d[0] ** 2 + 10.0 * d[1] ** 2 + 3.0 * d[0] * d[1])


@pytest.mark.parametrize("n", [1, 2, 5, 10])
def test_powell_convex_quadratic(n, rng):
    c = rng.uniform(-100.0, 100.0, size=n)
    algorithm = PowellOptimizer().create(n)
    algorithm.set_function(lambda x: float(np.sum((x - c) ** 2)))
    state = algorithm.find_minimum(np.zeros(n))
    assert state.classification is Classification.PROPER_RESULT
    assert np.allclose(state.x, c, atol=1e-6)
    assert state.minimum == pytest.approx(float(np.sum((state.x - c) ** 2)))


def test_powell_rotated_quadratic():
    algorithm = PowellOptimizer().create(2)
    algorithm.set_function(rotated_quadratic)
    state = algorithm.find_minimum(np.array([5.0, 5.0]))
    assert state.success
    assert np.allclose(state.x, [1.0, -2.0], atol=1e-6)


def test_powell_rosenbrock():
    algorithm = PowellOptimizer().create(2)
    algorithm.set_function(rosenbrock)
    state = algorithm.find_minimum(np.array([-1.2, 1.0]))
    assert state.success
    assert np.allclose(state.x, [1.0, 1.0], atol=1e-3)


def test_powell_with_direction_reset():
    algorithm = PowellOptimizer(reset_interval=2).create(2)
    algorithm.set_function(rotated_quadratic)
    state = algorithm.find_minimum(np.array([5.0, 5.0]))
    assert state.success
    assert np.allclose(state.x, [1.0, -2.0], atol=1e-6)


def test_powell_iteration_budget():
    optimizer = PowellOptimizer(abort_condition=PowellAbortCondition(max_iterations=1))
    algorithm = optimizer.create(2)
    algorithm.set_function(rosenbrock)
    state = algorithm.find_minimum(np.array([-1.2, 1.0]))
    assert state.classification is Classification.ITERATION_LIMIT_EXCEEDED
    assert state.iterations == 1
    assert state.minimum < rosenbrock(np.array([-1.2, 1.0]))


def test_powell_evaluation_budget():
    optimizer = PowellOptimizer(abort_condition=PowellAbortCondition(max_evaluations=10))
    algorithm = optimizer.create(2)
    algorithm.set_function(rosenbrock)
    state = algorithm.find_minimum(np.array([-1.2, 1.0]))
    assert state.classification is Classification.EVALUATION_LIMIT_EXCEEDED
    assert state.evaluations >= 10
    assert state.iterations == 1


def test_powell_counts_evaluations():
    calls = []

    def objective(x):
        calls.append(x.copy())
        return rotated_quadratic(x)

    algorithm = PowellOptimizer().create(2)
    algorithm.set_function(objective)
    state = algorithm.find_minimum(np.zeros(2))
    assert state.evaluations == len(calls)


def test_powell_is_deterministic():
    results = []
    for _ in range(2):
        algorithm = PowellOptimizer().create(2)
        algorithm.set_function(rosenbrock)
        results.append(algorithm.find_minimum(np.array([-1.2, 1.0])))
    assert np.array_equal(results[0].x, results[1].x)
    assert results[0].minimum == results[1].minimum
    assert results[0].evaluations == results[1].evaluations


def test_powell_box_constrained_minimum_on_boundary():
    algorithm = PowellOptimizer().create_constrained(BoxRegion.uniform(2, 0.0, 1.0))
    algorithm.set_function(lambda x: float((x[0] - 2.0) ** 2 + (x[1] + 1.0) ** 2))
    state = algorithm.find_minimum(np.array([0.5, 0.5]))
    assert state.success
    assert np.allclose(state.x, [1.0, 0.0], atol=1e-5)
    assert np.all((state.x >= 0.0) & (state.x <= 1.0))


def test_powell_with_golden_section_line_search():
    calls = []

    def objective(x):
        calls.append(1)
        return rotated_quadratic(x)

    algorithm = PowellOptimizer(line_search=GoldenSectionSearch()).create(2)
    algorithm.set_function(objective)
    state = algorithm.find_minimum(np.array([5.0, 5.0]))
    assert state.success
    assert np.allclose(state.x, [1.0, -2.0], atol=1e-4)
    assert state.evaluations == len(calls)
