"""Projected Levenberg-Marquardt method for nonlinear least squares.

Minimizes ``||r(x)||^2`` for a residual function ``r: R^n -> R^k`` following
Madsen, Nielsen & Tingleff, *Methods for Non-Linear Least Squares Problems*
(2004), algorithm 3.16. Each trial point ``x + delta`` is projected onto the
feasible region before it is evaluated, so accepted iterates never leave it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from ..convex.projection import FeasibleSetProjection, IdentityProjection, create_projection
from ..convex.regions import Region
from ..diagnostics import check_invariant
from ..logging import get_logger
from .abort import LevenbergMarquardtAbortCondition
from .core import (
    Algorithm,
    Array,
    Classification,
    Constraint,
    ConstraintDescriptor,
    ConstraintType,
    MultivariateOptimizer,
    State,
)
from .utils import lu_solve

logger = get_logger(__name__)


@dataclass(frozen=True)
class LevenbergMarquardtOptimizer(MultivariateOptimizer):
    """
    Levenberg-Marquardt optimizer with native support for linear constraints.

    Constraints are handled by projecting every trial point onto the feasible
    region: boxes by clipping, linear (in)equalities by a small quadratic
    program.
    """

    abort_condition: LevenbergMarquardtAbortCondition = field(
        default_factory=LevenbergMarquardtAbortCondition
    )

    name = "Levenberg-Marquardt"
    long_name = "Projected Levenberg-Marquardt optimizer"

    @property
    def constraint(self) -> ConstraintDescriptor:
        return ConstraintDescriptor(
            ConstraintType.BOX | ConstraintType.LINEAR_INEQUALITY | ConstraintType.LINEAR_EQUALITY
        )

    def _create(self, dimension: int) -> "LevenbergMarquardtAlgorithm":
        return LevenbergMarquardtAlgorithm(self, IdentityProjection(dimension))

    def _create_constrained(self, constraints: Tuple[Constraint, ...]) -> "LevenbergMarquardtAlgorithm":
        regions = tuple(constraint.region for constraint in constraints)
        return LevenbergMarquardtAlgorithm(self, create_projection(regions=regions), regions)


class LevenbergMarquardtAlgorithm(Algorithm):
    """Per-run state of :class:`LevenbergMarquardtOptimizer`."""

    def __init__(
        self,
        factory: LevenbergMarquardtOptimizer,
        projection: FeasibleSetProjection,
        regions: Tuple[Region, ...] = (),
    ) -> None:
        super().__init__(factory, projection.dimension)
        self.projection = projection
        self.regions = regions

    def _is_feasible(self, x: Array) -> bool:
        return all(region.contains(x) for region in self.regions)

    def _minimize(self, x: Array) -> State:
        abort = self.factory.abort_condition
        fun = self._function
        n = self.dimension

        x = self.projection.project(x)
        residual, jacobian = fun.evaluate(x)
        evaluations = 1
        norm_sq = float(residual @ residual)
        a_mat = jacobian.T @ jacobian
        g = jacobian.T @ residual

        if np.linalg.norm(g, ord=np.inf) <= abort.tolerance1:
            logger.info("Levenberg-Marquardt: initial point is stationary")
            return State(
                Classification.PROPER_RESULT, x, norm_sq, evaluations, 0, "gradient below tolerance"
            )

        mu = abort.tau * float(np.max(np.diag(a_mat)))
        nu = 2.0
        eye = np.eye(n)

        for iteration in range(1, abort.max_iterations + 1):
            while True:
                delta = lu_solve(a_mat + mu * eye, -g)
                if np.linalg.norm(delta) <= abort.tolerance2 * np.linalg.norm(x):
                    logger.info("Levenberg-Marquardt converged after %d iterations (step)", iteration)
                    return State(
                        Classification.PROPER_RESULT,
                        x,
                        norm_sq,
                        evaluations,
                        iteration,
                        "step below tolerance",
                    )

                p = self.projection.project(x + delta)
                residual_p, jacobian_p = fun.evaluate(p)
                evaluations += 1
                norm_sq_p = float(residual_p @ residual_p)

                predicted = mu * float(delta @ delta) - float(delta @ g)
                rho = (norm_sq - norm_sq_p) / predicted if predicted > 0.0 else 0.0
                if rho > 0.0:
                    x = p
                    norm_sq = norm_sq_p
                    a_mat = jacobian_p.T @ jacobian_p
                    g = jacobian_p.T @ residual_p
                    check_invariant(self._is_feasible(x), f"iterate {x} left the feasible region")
                    logger.debug(
                        "Levenberg-Marquardt iteration %d: |r|^2=%.12g mu=%.3g rho=%.3g",
                        iteration,
                        norm_sq,
                        mu,
                        rho,
                    )
                    if (
                        np.linalg.norm(g, ord=np.inf) <= abort.tolerance1
                        or np.sqrt(norm_sq) < abort.tolerance3
                    ):
                        logger.info("Levenberg-Marquardt converged after %d iterations", iteration)
                        return State(
                            Classification.PROPER_RESULT,
                            x,
                            norm_sq,
                            evaluations,
                            iteration,
                            "gradient or residual below tolerance",
                        )
                    s = 2.0 * rho - 1.0
                    mu *= max(1.0 / 3.0, 1.0 - s * s * s)
                    nu = 2.0
                else:
                    mu *= nu
                    nu *= 2.0

                if evaluations >= abort.max_evaluations:
                    logger.info(
                        "Levenberg-Marquardt stopped: evaluation budget of %d exhausted",
                        abort.max_evaluations,
                    )
                    return State(
                        Classification.EVALUATION_LIMIT_EXCEEDED,
                        x,
                        norm_sq,
                        evaluations,
                        iteration,
                        "evaluation limit exceeded",
                    )
                if rho > 0.0:
                    break

        logger.info("Levenberg-Marquardt stopped: iteration budget of %d exhausted", abort.max_iterations)
        return State(
            Classification.ITERATION_LIMIT_EXCEEDED,
            x,
            norm_sq,
            evaluations,
            abort.max_iterations,
            "iteration limit exceeded",
        )


__all__ = ["LevenbergMarquardtOptimizer", "LevenbergMarquardtAlgorithm"]
