"""Utility helpers for finite differences and linear algebra routines.

Dense linear solves go through SciPy's LU factorization with partial
pivoting; singular systems fall back to a ridge-regularized solve and finally
to least squares.
"""

from __future__ import annotations

import warnings
from typing import Callable

import numpy as np
from scipy import linalg as sla

from ..convex.utils import stable_solve
from ..logging import get_logger

Array = np.ndarray
Residual = Callable[[Array], Array]

logger = get_logger(__name__)


def approx_jacobian(fun: Residual, x: Array, eps: float = 1e-6) -> Array:
    """Compute a central-difference Jacobian approximation.

    Parameters
    ----------
    fun:
        Vector-valued function returning a 1-D array given x.
    x:
        Point where the Jacobian is approximated.
    eps:
        Relative perturbation size; the step for coordinate ``i`` is
        ``eps * max(1, |x_i|)``.

    Returns
    -------
    ndarray
        Matrix of shape ``(len(fun(x)), len(x))``.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float).copy()
    columns = []
    for i in range(x.size):
        step = eps * max(1.0, abs(x[i]))
        ei = np.zeros_like(x)
        ei[i] = step
        f_plus = np.asarray(fun(x + ei), dtype=float).reshape(-1)
        f_minus = np.asarray(fun(x - ei), dtype=float).reshape(-1)
        columns.append((f_plus - f_minus) / (2.0 * step))
    return np.column_stack(columns)


def lu_solve(mat: Array, vec: Array) -> Array:
    """Solve ``mat @ x = vec`` by LU with partial pivoting.

    An exactly or numerically singular matrix is reported at WARNING level and
    handed to :func:`multiopt.convex.utils.stable_solve`.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("error", sla.LinAlgWarning)
        try:
            factor = sla.lu_factor(mat)
            solution = sla.lu_solve(factor, vec)
        except (sla.LinAlgWarning, np.linalg.LinAlgError):
            logger.warning("singular linear system, using regularized solve")
            return stable_solve(mat, vec)
    if not np.all(np.isfinite(solution)):
        logger.warning("non-finite LU solution, using regularized solve")
        return stable_solve(mat, vec)
    return solution


__all__ = [
    "Array",
    "Residual",
    "approx_jacobian",
    "lu_solve",
]
