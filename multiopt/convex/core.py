"""
Core problem and result dataclasses for the quadratic program solver.

Equality constraints use the pair ``(A, b)`` to represent ``A x = b`` while
inequality constraints use ``(G, h)`` to represent ``G x <= h``. Bounds ``lb``
and ``ub`` are optional element-wise vectors; ``None`` denotes a free bound
whereas ``np.inf`` or ``-np.inf`` can be used to represent one-sided bounds.

The feasible-set projection solves ``min 0.5 ||z - p||^2`` over the feasible
region, which is a :class:`QPProblem` with ``H = I`` and ``g = -p``.

References:
    - Goldfarb & Idnani, "A numerically stable dual method for solving
      strictly convex quadratic programs", Math. Programming 27 (1983)
    - Nocedal & Wright, *Numerical Optimization* (2006), chapter 16
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class Status(Enum):
    """Solution status for the quadratic program solver."""

    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    MAX_ITER = "max_iter"


@dataclass
class QPProblem:
    """
    Quadratic program with convex quadratic and optional linear constraints.

    The quadratic term ``H`` must be symmetric positive definite.
    """

    H: np.ndarray
    g: np.ndarray
    A: Optional[np.ndarray] = None
    b: Optional[np.ndarray] = None
    G: Optional[np.ndarray] = None
    h: Optional[np.ndarray] = None
    lb: Optional[np.ndarray] = None
    ub: Optional[np.ndarray] = None


@dataclass
class QPResult:
    """
    Solution container of :func:`multiopt.convex.qp.active_set_qp`.

    Attributes:
        x: Primal solution vector.
        fun: Objective value at ``x``.
        status: Enumeration describing solver exit.
        message: Human-readable string explaining the status.
        nit: Number of primal and dual steps performed.
        primal_residual: Summed constraint violation at ``x``.
    """

    x: np.ndarray
    fun: float
    status: Status
    message: str
    nit: int
    primal_residual: Optional[float] = None


__all__ = ["Status", "QPProblem", "QPResult"]
