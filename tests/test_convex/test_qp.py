import numpy as np
import pytest
from scipy.optimize import nnls

import multiopt.convex.qp as qp_module
from multiopt.convex.core import QPProblem, Status
from multiopt.convex.qp import active_set_qp, solve_qp


def kkt_residual(target, x, g_mat, h_vec, a_mat, active_tol=1e-8):
    """Residual of the best multiplier fit for ``target - x`` over the active rows."""
    columns = [row for row, slack in zip(g_mat, h_vec - g_mat @ x) if slack <= active_tol]
    columns += [row for row in a_mat] + [-row for row in a_mat]
    if not columns:
        return float(np.linalg.norm(target - x))
    _, residual = nnls(np.array(columns).T, target - x)
    return residual


def test_active_set_qp_equality_constraint():
    H = np.eye(2)
    g = np.zeros(2)
    A = np.array([[1.0, 1.0]])
    b = np.array([1.0])
    result = active_set_qp(H, g, a_mat=A, b_vec=b)
    assert result.status is Status.OPTIMAL
    assert np.allclose(result.x, np.array([0.5, 0.5]), atol=1e-6)
    assert pytest.approx(0.25, rel=1e-6) == result.fun


def test_active_set_qp_box_projection():
    target = np.array([1.5, -0.5, 0.2])
    result = active_set_qp(np.eye(3), -target, lb=np.zeros(3), ub=np.array([1.0, 1.0, 0.5]))
    assert result.status is Status.OPTIMAL
    assert np.array_equal(result.x, np.clip(target, 0.0, [1.0, 1.0, 0.5]))


def test_active_set_qp_linear_inequality():
    res = active_set_qp(np.array([[1.0]]), np.array([-2.0]), g_mat=np.array([[1.0]]), h_vec=np.array([1.0]))
    assert res.status is Status.OPTIMAL
    assert pytest.approx(1.0, rel=1e-6) == res.x[0]


def test_active_set_qp_half_plane_projection():
    # nearest point of {x + y <= 1} to (1, 1)
    target = np.array([1.0, 1.0])
    res = active_set_qp(np.eye(2), -target, g_mat=np.array([[1.0, 1.0]]), h_vec=np.array([1.0]))
    assert res.status is Status.OPTIMAL
    assert np.allclose(res.x, [0.5, 0.5], atol=1e-8)
    assert res.primal_residual <= 1e-10


def test_active_set_qp_inactive_constraint_keeps_unconstrained_minimum():
    target = np.array([0.2, 0.3])
    res = active_set_qp(np.eye(2), -target, g_mat=np.array([[1.0, 1.0]]), h_vec=np.array([1.0]))
    assert res.status is Status.OPTIMAL
    assert res.nit == 0
    assert np.allclose(res.x, target, atol=1e-10)


def test_active_set_qp_drops_constraint_that_becomes_inactive():
    # 10 y <= 10 is added first and released once x + y <= -2 enters
    target = np.array([0.0, 3.0])
    g_mat = np.array([[0.0, 10.0], [1.0, 1.0]])
    h_vec = np.array([10.0, -2.0])
    res = active_set_qp(np.eye(2), -target, g_mat=g_mat, h_vec=h_vec)
    assert res.status is Status.OPTIMAL
    assert res.nit == 3
    assert np.allclose(res.x, [-2.5, 0.5], atol=1e-10)


def test_active_set_qp_general_hessian():
    # along x + y = 1 the objective reduces to 2 x^2 - x - 2
    H = np.array([[2.0, 1.0], [1.0, 4.0]])
    g = np.array([-2.0, -4.0])
    res = active_set_qp(H, g, a_mat=np.array([[1.0, 1.0]]), b_vec=np.array([1.0]))
    assert res.status is Status.OPTIMAL
    assert np.allclose(res.x, [0.25, 0.75], atol=1e-10)


def test_solve_qp_problem_dataclass():
    problem = QPProblem(H=np.eye(2), g=np.array([-2.0, 0.0]), lb=np.array([-1.0, -1.0]), ub=np.array([1.0, 1.0]))
    res = solve_qp(problem)
    assert res.status is Status.OPTIMAL
    assert np.allclose(res.x, [1.0, 0.0], atol=1e-8)


def test_active_set_qp_rejects_bad_hessian():
    with pytest.raises(ValueError):
        active_set_qp(np.eye(3), np.zeros(2))
    with pytest.raises(ValueError):
        active_set_qp(np.diag([1.0, 0.0]), np.zeros(2))


def test_active_set_qp_reports_infeasible_inequalities():
    res = active_set_qp(
        np.eye(1),
        np.zeros(1),
        g_mat=np.array([[1.0], [-1.0]]),
        h_vec=np.array([0.0, -1.0]),
    )
    assert res.status is Status.INFEASIBLE


def test_active_set_qp_reports_inconsistent_equalities():
    res = active_set_qp(
        np.eye(2),
        np.zeros(2),
        a_mat=np.array([[1.0, 1.0], [2.0, 2.0]]),
        b_vec=np.array([1.0, 3.0]),
    )
    assert res.status is Status.INFEASIBLE


def test_active_set_qp_reports_equality_outside_box():
    res = active_set_qp(
        np.eye(2),
        np.zeros(2),
        a_mat=np.array([[1.0, 1.0]]),
        b_vec=np.array([3.0]),
        lb=np.zeros(2),
        ub=np.ones(2),
    )
    assert res.status is Status.INFEASIBLE


def test_active_set_qp_accepts_redundant_equalities():
    res = active_set_qp(
        np.eye(2),
        np.zeros(2),
        a_mat=np.array([[1.0, 1.0], [2.0, 2.0]]),
        b_vec=np.array([1.0, 2.0]),
    )
    assert res.status is Status.OPTIMAL
    assert np.allclose(res.x, [0.5, 0.5], atol=1e-10)


def test_active_set_qp_iteration_budget():
    res = active_set_qp(np.eye(2), -np.array([5.0, 5.0]), g_mat=np.eye(2), h_vec=np.ones(2), maxiter=1)
    assert res.status is Status.MAX_ITER
    assert res.nit == 1


@pytest.mark.parametrize("with_equality", [False, True])
def test_active_set_qp_random_projections_satisfy_kkt(rng, with_equality):
    for _ in range(200):
        n = int(rng.integers(1, 6))
        m = int(rng.integers(1, 7))
        g_mat = rng.standard_normal((m, n))
        h_vec = rng.uniform(0.1, 1.0, size=m)
        a_mat = rng.standard_normal((1, n)) if with_equality else np.zeros((0, n))
        target = 3.0 * rng.standard_normal(n)

        res = active_set_qp(
            np.eye(n),
            -target,
            a_mat=a_mat if with_equality else None,
            b_vec=np.zeros(1) if with_equality else None,
            g_mat=g_mat,
            h_vec=h_vec,
        )
        assert res.status is Status.OPTIMAL
        violation = np.clip(g_mat @ res.x - h_vec, 0.0, None).sum() + np.abs(a_mat @ res.x).sum()
        assert violation <= 1e-10
        assert kkt_residual(target, res.x, g_mat, h_vec, a_mat) <= 1e-7


def test_qp_assemble_constraints_mixed_bounds():
    system = qp_module._assemble_constraints(
        n=2,
        a_mat=None,
        b_vec=None,
        g_mat=np.zeros((0, 2)),
        h_vec=np.zeros(0),
        lb=np.array([-np.inf, 0.0]),
        ub=np.array([1.0, np.inf]),
    )
    assert system.g_mat.shape[0] == 2
    assert system.rows().shape == (2, 2)


def test_qp_assemble_constraints_dimension_mismatch():
    with pytest.raises(ValueError):
        qp_module._assemble_constraints(
            n=2, a_mat=np.ones((1, 3)), b_vec=None, g_mat=None, h_vec=None, lb=None, ub=None
        )
