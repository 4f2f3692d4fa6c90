"""Nelder-Mead downhill simplex method.

Derivative-free alternative to Powell's method using reflection, expansion,
contraction and shrinking of a simplex of ``n + 1`` vertices (Press et al.,
*Numerical Recipes* (2007), section 10.5).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from ..logging import get_logger
from .abort import NelderMeadAbortCondition
from .constraints import BOX_TRANSFORMATION, ConstraintProvider
from .core import Algorithm, Array, Classification, OrdinaryOptimizer, State

logger = get_logger(__name__)

REFLECTION = -1.0
CONTRACTION = 0.5
EXPANSION = 2.0


@dataclass(frozen=True)
class NelderMeadOptimizer(OrdinaryOptimizer):
    """
    Nelder-Mead simplex optimizer.

    Args:
        abort_condition: Tolerances and budgets.
        constraint_provider: Strategy used by :meth:`create_constrained`.
        initial_scale_factor: Edge length ``c`` of the initial regular simplex.
    """

    abort_condition: NelderMeadAbortCondition = field(default_factory=NelderMeadAbortCondition)
    constraint_provider: ConstraintProvider = BOX_TRANSFORMATION
    initial_scale_factor: float = 1.0

    name = "Nelder-Mead"
    long_name = "Nelder-Mead simplex optimizer"

    def __post_init__(self) -> None:
        if not self.initial_scale_factor > 0.0:
            raise ValueError("initial_scale_factor must be positive")

    def _create(self, dimension: int) -> "NelderMeadAlgorithm":
        return NelderMeadAlgorithm(self, dimension)


class NelderMeadAlgorithm(Algorithm):
    """Per-run state of :class:`NelderMeadOptimizer`."""

    def initial_simplex(self, x: Array) -> Array:
        """Regular simplex with vertex ``x`` and edge length ``initial_scale_factor``."""
        n = self.dimension
        c = self.factory.initial_scale_factor
        q = c * (math.sqrt(n + 1) - 1.0) / (math.sqrt(2.0) * n)
        simplex = np.tile(x, (n + 1, 1))
        simplex[1:] += q + (c / math.sqrt(2.0)) * np.eye(n)
        return simplex

    def _minimize(self, x: Array) -> State:
        n = self.dimension
        abort = self.factory.abort_condition
        fun = self._function.value

        simplex = self.initial_simplex(x)
        values = np.array([fun(vertex) for vertex in simplex])
        evaluations = n + 1
        accepted = 0

        def try_vertex(highest: int, factor: float) -> float:
            centroid = (simplex.sum(axis=0) - simplex[highest]) / n
            trial = (1.0 - factor) * centroid + factor * simplex[highest]
            value = fun(trial)
            if value < values[highest]:
                simplex[highest] = trial
                values[highest] = value
            return value

        for iteration in range(1, abort.max_iterations + 1):
            order = np.argsort(values, kind="stable")
            lowest, next_highest, highest = order[0], order[-2], order[-1]

            if abort.is_satisfied(values[lowest], values[highest]):
                accepted += 1
            if accepted >= abort.required_accepted_points:
                logger.info("Nelder-Mead converged after %d iterations", iteration)
                return State(
                    Classification.PROPER_RESULT,
                    simplex[lowest].copy(),
                    float(values[lowest]),
                    evaluations,
                    iteration,
                    "simplex spread below tolerance",
                )
            if evaluations >= abort.max_evaluations:
                logger.info("Nelder-Mead stopped: evaluation budget of %d exhausted", abort.max_evaluations)
                return State(
                    Classification.EVALUATION_LIMIT_EXCEEDED,
                    simplex[lowest].copy(),
                    float(values[lowest]),
                    evaluations,
                    iteration,
                    "evaluation limit exceeded",
                )

            value = try_vertex(highest, REFLECTION)
            evaluations += 1
            if value <= values[lowest]:
                try_vertex(highest, EXPANSION)
                evaluations += 1
            elif value >= values[next_highest]:
                previous = values[highest]
                value = try_vertex(highest, CONTRACTION)
                evaluations += 1
                if value >= previous:
                    # shrink towards the lowest vertex
                    for i in range(n + 1):
                        if i != lowest:
                            simplex[i] = 0.5 * (simplex[i] + simplex[lowest])
                            values[i] = fun(simplex[i])
                    evaluations += n
            logger.debug(
                "Nelder-Mead iteration %d: f_low=%.12g f_high=%.12g",
                iteration,
                values.min(),
                values.max(),
            )

        lowest = int(np.argmin(values))
        logger.info("Nelder-Mead stopped: iteration budget of %d exhausted", abort.max_iterations)
        return State(
            Classification.ITERATION_LIMIT_EXCEEDED,
            simplex[lowest].copy(),
            float(values[lowest]),
            evaluations,
            abort.max_iterations,
            "iteration limit exceeded",
        )


__all__ = ["NelderMeadOptimizer", "NelderMeadAlgorithm"]
