"""
Quadratic programming solver used by the feasible-set projection.

Implements the dual active-set method of Goldfarb & Idnani (1983) for small
strictly convex quadratic programs. The iteration starts at the unconstrained
minimum and adds violated constraints one at a time, so no feasible starting
point is required and an empty feasible set is detected instead of being
approximated. Equality constraints, general linear inequalities and bound
constraints are supported; bounds are treated as additional inequalities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..logging import get_logger
from .core import QPProblem, QPResult, Status
from .utils import project_box, stable_solve, symmetrize

logger = get_logger(__name__)

# Relative size below which a step direction is treated as zero
_DEPENDENT = 1e-12


@dataclass
class _ConstraintSystem:
    a_eq: np.ndarray
    b_eq: np.ndarray
    g_mat: np.ndarray
    h_vec: np.ndarray
    lb: Optional[np.ndarray]
    ub: Optional[np.ndarray]

    @property
    def n_eq(self) -> int:
        return self.a_eq.shape[0]

    def rows(self) -> np.ndarray:
        return np.vstack([self.a_eq, self.g_mat])

    def rhs(self) -> np.ndarray:
        return np.concatenate([self.b_eq, self.h_vec])


def _assemble_constraints(
    n: int,
    a_mat: Optional[np.ndarray],
    b_vec: Optional[np.ndarray],
    g_mat: Optional[np.ndarray],
    h_vec: Optional[np.ndarray],
    lb: Optional[np.ndarray],
    ub: Optional[np.ndarray],
) -> _ConstraintSystem:
    def _matrix(mat: Optional[np.ndarray]) -> np.ndarray:
        if mat is None:
            return np.zeros((0, n))
        arr = np.asarray(mat, dtype=float)
        if arr.ndim == 1 and arr.size == n:
            arr = arr.reshape(1, n)
        if arr.ndim != 2 or arr.shape[1] != n:
            raise ValueError("Constraint matrix dimension mismatch")
        return arr

    def _vector(vec: Optional[np.ndarray], rows: int) -> np.ndarray:
        if vec is None:
            return np.zeros(rows)
        arr = np.asarray(vec, dtype=float).reshape(-1)
        if arr.shape[0] != rows:
            raise ValueError("Constraint vector dimension mismatch")
        return arr

    a_eq = _matrix(a_mat)
    b_eq = _vector(b_vec, a_eq.shape[0])
    g_in = _matrix(g_mat)
    h_in = _vector(h_vec, g_in.shape[0])

    lb_vec = None if lb is None else np.asarray(lb, dtype=float).reshape(-1)
    ub_vec = None if ub is None else np.asarray(ub, dtype=float).reshape(-1)
    if lb_vec is not None and lb_vec.shape[0] != n:
        raise ValueError("Lower bound dimension mismatch")
    if ub_vec is not None and ub_vec.shape[0] != n:
        raise ValueError("Upper bound dimension mismatch")

    bound_rows = []
    bound_rhs = []
    if lb_vec is not None:
        mask = np.isfinite(lb_vec)
        if np.any(mask):
            bound_rows.append(-np.eye(n)[mask])
            bound_rhs.append(-lb_vec[mask])
    if ub_vec is not None:
        mask = np.isfinite(ub_vec)
        if np.any(mask):
            bound_rows.append(np.eye(n)[mask])
            bound_rhs.append(ub_vec[mask])

    if bound_rows:
        g_full = np.vstack([g_in, *bound_rows])
        h_full = np.concatenate([h_in, *bound_rhs])
    else:
        g_full = g_in
        h_full = h_in

    return _ConstraintSystem(a_eq=a_eq, b_eq=b_eq, g_mat=g_full, h_vec=h_full, lb=lb_vec, ub=ub_vec)


def _violations(system: _ConstraintSystem, x: np.ndarray) -> np.ndarray:
    """Per-row violation: ``|a x - b|`` for equalities, ``max(g x - h, 0)`` for inequalities."""

    eq = np.abs(system.a_eq @ x - system.b_eq)
    ineq = np.clip(system.g_mat @ x - system.h_vec, 0.0, None)
    return np.concatenate([eq, ineq])


def _inverse_hessian(hessian: np.ndarray) -> np.ndarray:
    try:
        chol = np.linalg.cholesky(hessian)
    except np.linalg.LinAlgError as exc:
        raise ValueError("H must be symmetric positive definite") from exc
    chol_inv = np.linalg.inv(chol)
    return chol_inv.T @ chol_inv


def active_set_qp(
    hessian: np.ndarray,
    g_vec: np.ndarray,
    a_mat: Optional[np.ndarray] = None,
    b_vec: Optional[np.ndarray] = None,
    g_mat: Optional[np.ndarray] = None,
    h_vec: Optional[np.ndarray] = None,
    lb: Optional[np.ndarray] = None,
    ub: Optional[np.ndarray] = None,
    maxiter: Optional[int] = None,
    tol: float = 1e-10,
) -> QPResult:
    """
    Solve ``min 0.5 x'Hx + g'x`` subject to linear constraints via a dual active-set method.

    Args:
        hessian: Symmetric positive definite matrix ``H``.
        g_vec: Linear term ``g``.
        a_mat, b_vec: Equality constraints ``A x = b``.
        g_mat, h_vec: Inequality constraints ``G x <= h``.
        lb, ub: Element-wise bounds; infinite entries are ignored.
        maxiter: Maximum number of primal or dual steps; defaults to
            ``50 * (rows + n)``.
        tol: Bound on the summed constraint violation of the returned point.

    Returns:
        :class:`QPResult` with ``Status.OPTIMAL`` when the summed violation of
        all constraints is at most ``tol`` (bounds hold exactly),
        ``Status.INFEASIBLE`` when the constraints admit no point and
        ``Status.MAX_ITER`` otherwise.

    Raises:
        ValueError: If ``H`` is not positive definite or shapes disagree.
    """

    hessian = symmetrize(np.asarray(hessian, dtype=float))
    g_vec = np.asarray(g_vec, dtype=float).reshape(-1)
    n = g_vec.shape[0]
    if hessian.shape != (n, n):
        raise ValueError("H must be square and match the dimension of g")

    system = _assemble_constraints(n, a_mat, b_vec, g_mat, h_vec, lb, ub)
    h_inv = _inverse_hessian(hessian)
    rows = system.rows()
    rhs = system.rhs()
    n_eq = system.n_eq
    m = rows.shape[0]
    if maxiter is None:
        maxiter = 50 * (m + n)
    # constraints violated by less than this are never added
    row_tol = 0.1 * tol / max(m, 1)

    def objective(vector: np.ndarray) -> float:
        return float(0.5 * vector @ (hessian @ vector) + g_vec @ vector)

    def result(point: np.ndarray, status: Status, message: str, nit: int) -> QPResult:
        residual = float(_violations(system, point).sum())
        logger.debug("dual active-set QP: %s after %d steps (violation %.3g)", status.value, nit, residual)
        return QPResult(
            x=point,
            fun=objective(point),
            status=status,
            message=message,
            nit=nit,
            primal_residual=residual,
        )

    x = -h_inv @ g_vec
    active: List[int] = []
    normals: List[np.ndarray] = []
    u = np.zeros(0)
    skipped = set()
    nit = 0

    while True:
        point = project_box(x, system.lb, system.ub)
        if _violations(system, point).sum() <= tol:
            return result(point, Status.OPTIMAL, "all constraints satisfied", nit)
        violation = _violations(system, x)
        candidates = [
            i for i in range(m) if i not in skipped and i not in active and violation[i] > row_tol
        ]
        if not candidates:
            return result(point, Status.OPTIMAL, "no violated constraint left", nit)
        equalities = [i for i in candidates if i < n_eq]
        pool = equalities if equalities else candidates
        p = max(pool, key=lambda i: violation[i])

        # orient the row as n_p x >= b_p with n_p x - b_p < 0
        sign = -1.0 if rows[p] @ x - rhs[p] > 0.0 else 1.0
        n_p = sign * rows[p]
        b_p = sign * rhs[p]
        u_p = 0.0

        while True:
            nit += 1
            if nit > maxiter:
                return result(point, Status.MAX_ITER, "Maximum iterations reached", maxiter)

            hn = h_inv @ n_p
            if active:
                basis = np.array(normals).T
                h_basis = h_inv @ basis
                r = stable_solve(basis.T @ h_basis, basis.T @ hn)
                z = hn - h_basis @ r
            else:
                r = np.zeros(0)
                z = hn
            s_p = float(n_p @ x - b_p)

            t1 = np.inf
            drop = -1
            for j, idx in enumerate(active):
                if idx >= n_eq and r[j] > _DEPENDENT and u[j] / r[j] < t1:
                    t1 = u[j] / r[j]
                    drop = j
            curvature = float(z @ n_p)
            t2 = -s_p / curvature if curvature > _DEPENDENT * float(n_p @ hn) else np.inf

            if not np.isfinite(t1) and not np.isfinite(t2):
                if p < n_eq and abs(s_p) <= tol:
                    # linearly dependent on active equalities and consistent
                    skipped.add(p)
                    break
                point = project_box(x, system.lb, system.ub)
                return result(point, Status.INFEASIBLE, "constraints are inconsistent", nit)

            t = min(t1, t2)
            if np.isfinite(t2):
                x = x + t * z
            if active:
                u = u - t * r
            u_p += t
            if t2 <= t1:
                active.append(p)
                normals.append(n_p)
                u = np.append(u, u_p)
                break
            del active[drop]
            del normals[drop]
            u = np.delete(u, drop)


def solve_qp(problem: QPProblem, **options) -> QPResult:
    """Solve a :class:`QPProblem`; ``options`` are forwarded to :func:`active_set_qp`."""
    return active_set_qp(
        problem.H,
        problem.g,
        a_mat=problem.A,
        b_vec=problem.b,
        g_mat=problem.G,
        h_vec=problem.h,
        lb=problem.lb,
        ub=problem.ub,
        **options,
    )


__all__ = ["active_set_qp", "solve_qp"]
