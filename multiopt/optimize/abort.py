"""Abort conditions: immutable tolerances and budgets of the iterative algorithms.

Each condition validates itself at construction; a negative tolerance or a
non-positive budget raises ``ValueError``. Exhausting a budget is not an
error: the algorithms report it through the returned ``State``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def _require_non_negative(**values: float) -> None:
    for name, value in values.items():
        if not value >= 0.0:
            raise ValueError(f"{name} must be non-negative, got {value!r}")


def _require_positive_int(**values: int) -> None:
    for name, value in values.items():
        if isinstance(value, bool) or int(value) != value or value < 1:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class PowellAbortCondition:
    """
    Stopping rule of Powell's direction-set method.

    Args:
        tolerance: Relative decrease of the objective over one outer iteration
            below which the run is considered converged.
        absolute_tolerance: Absolute floor added to the relative test so that
            an objective converging to zero still terminates.
        max_evaluations: Function-evaluation budget.
        max_iterations: Outer-iteration budget.
    """

    tolerance: float = 1e-10
    absolute_tolerance: float = 1e-20
    max_evaluations: int = 20000
    max_iterations: int = 1000

    def __post_init__(self) -> None:
        _require_non_negative(tolerance=self.tolerance, absolute_tolerance=self.absolute_tolerance)
        _require_positive_int(max_evaluations=self.max_evaluations, max_iterations=self.max_iterations)

    def is_satisfied(self, previous: float, current: float) -> bool:
        """Relative-difference test between two successive objective values."""
        return 2.0 * abs(previous - current) <= (
            self.tolerance * (abs(previous) + abs(current)) + self.absolute_tolerance
        )


@dataclass(frozen=True)
class LevenbergMarquardtAbortCondition:
    """
    Stopping rule of the Levenberg-Marquardt method.

    Args:
        tau: Scale of the initial damping ``mu = tau * max(diag(J'J))``.
        tolerance1: Threshold on ``||J' r||_inf`` (stationarity).
        tolerance2: Relative step threshold ``||delta|| <= tolerance2 * ||x||``.
        tolerance3: Threshold on the residual norm ``||r||``.
        max_evaluations: Function-evaluation budget.
        max_iterations: Outer-iteration budget (accepted steps).
    """

    tau: float = 1e-3
    tolerance1: float = 1e-12
    tolerance2: float = 1e-14
    tolerance3: float = 1e-15
    max_evaluations: int = 5000
    max_iterations: int = 1000

    def __post_init__(self) -> None:
        _require_non_negative(
            tau=self.tau,
            tolerance1=self.tolerance1,
            tolerance2=self.tolerance2,
            tolerance3=self.tolerance3,
        )
        if self.tau == 0.0:
            raise ValueError("tau must be positive")
        _require_positive_int(max_evaluations=self.max_evaluations, max_iterations=self.max_iterations)


@dataclass(frozen=True)
class NelderMeadAbortCondition:
    """
    Stopping rule of the Nelder-Mead simplex method.

    The run converges once the relative spread between the highest and the
    lowest vertex value was below ``tolerance`` in ``required_accepted_points``
    checks, not necessarily consecutive ones.
    """

    tolerance: float = 1e-10
    max_evaluations: int = 15000
    max_iterations: int = 1500
    required_accepted_points: int = 5
    epsilon: float = 1e-10

    def __post_init__(self) -> None:
        _require_non_negative(tolerance=self.tolerance, epsilon=self.epsilon)
        _require_positive_int(
            max_evaluations=self.max_evaluations,
            max_iterations=self.max_iterations,
            required_accepted_points=self.required_accepted_points,
        )

    def is_satisfied(self, lowest: float, highest: float) -> bool:
        spread = 2.0 * abs(highest - lowest)
        return spread < self.tolerance * (abs(highest) + abs(lowest) + self.epsilon)


@dataclass(frozen=True)
class BrentAbortCondition:
    """Stopping rule of Brent's 1-D minimization: ``|x - m| <= 2 tol1 - (b - a) / 2``."""

    tolerance: float = 1e-8
    absolute_tolerance: float = 1e-10
    max_evaluations: int = 500
    max_iterations: int = 200

    def __post_init__(self) -> None:
        _require_non_negative(tolerance=self.tolerance, absolute_tolerance=self.absolute_tolerance)
        _require_positive_int(max_evaluations=self.max_evaluations, max_iterations=self.max_iterations)

    def interval_tolerance(self, x: float) -> float:
        return self.tolerance * abs(x) + self.absolute_tolerance


@dataclass(frozen=True)
class GoldenSectionAbortCondition:
    """Stopping rule of golden-section search: ``|x3 - x0| <= tolerance (|x1| + |x2|) + absolute_tolerance``."""

    tolerance: float = 1e-8
    absolute_tolerance: float = 1e-10
    max_evaluations: int = 500
    max_iterations: int = 500

    def __post_init__(self) -> None:
        _require_non_negative(tolerance=self.tolerance, absolute_tolerance=self.absolute_tolerance)
        _require_positive_int(max_evaluations=self.max_evaluations, max_iterations=self.max_iterations)

    def is_satisfied(self, x0: float, x1: float, x2: float, x3: float) -> bool:
        return abs(x3 - x0) <= self.tolerance * (abs(x1) + abs(x2)) + self.absolute_tolerance


@dataclass(frozen=True)
class PraxisAbortCondition:
    """
    Stopping rule of Brent's principal-axis method.

    Args:
        tolerance: Absolute part ``t0`` of the step tolerance
            ``sqrt(eps) * ||x|| + t0``.
        max_evaluations: Objective-evaluation budget.
        max_iterations: Budget of principal-axis rebuilds.
        required_accepted_points: Number of consecutive inner steps shorter
            than half the step tolerance that ends the run.
    """

    tolerance: float = float(np.finfo(float).eps)
    max_evaluations: int = 100000
    max_iterations: int = 10000
    required_accepted_points: int = 2

    def __post_init__(self) -> None:
        _require_non_negative(tolerance=self.tolerance)
        _require_positive_int(
            max_evaluations=self.max_evaluations,
            max_iterations=self.max_iterations,
            required_accepted_points=self.required_accepted_points,
        )


__all__ = [
    "PowellAbortCondition",
    "LevenbergMarquardtAbortCondition",
    "NelderMeadAbortCondition",
    "BrentAbortCondition",
    "GoldenSectionAbortCondition",
    "PraxisAbortCondition",
]
