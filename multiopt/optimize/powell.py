"""Powell's derivative-free direction-set method.

Each outer iteration line-minimizes along ``n`` directions (initially the
coordinate axes). Afterwards the net displacement ``x_N - x_0`` may replace the
direction of largest decrease, following the discarding heuristic in Press et
al., *Numerical Recipes* (2007), section 10.7.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from ..logging import get_logger
from .abort import PowellAbortCondition
from .constraints import BOX_TRANSFORMATION, ConstraintProvider
from .core import Algorithm, Array, Classification, OrdinaryOptimizer, State
from .line_search import BrentLineSearch, LineFunction, LineSearch, LineSearchAlgorithm

logger = get_logger(__name__)


@dataclass(frozen=True)
class PowellOptimizer(OrdinaryOptimizer):
    """
    Powell's direction-set optimizer.

    Args:
        abort_condition: Tolerances and budgets.
        line_search: 1-D minimizer applied along each direction, Brent's
            method by default.
        constraint_provider: Strategy used by :meth:`create_constrained`.
        reset_interval: Reset the directions to the coordinate axes every
            ``reset_interval`` iterations; ``0`` never resets.

    Example:
        >>> optimizer = PowellOptimizer()
        >>> algorithm = optimizer.create(2)
        >>> _ = algorithm.set_function(lambda x: (x[0] - 1) ** 2 + (x[1] + 2) ** 2)
        >>> state = algorithm.find_minimum(np.zeros(2))
        >>> np.allclose(state.x, [1.0, -2.0])
        True
    """

    abort_condition: PowellAbortCondition = field(default_factory=PowellAbortCondition)
    line_search: LineSearch = field(default_factory=BrentLineSearch)
    constraint_provider: ConstraintProvider = BOX_TRANSFORMATION
    reset_interval: int = 0

    name = "Powell"
    long_name = "Powell direction-set optimizer"

    def __post_init__(self) -> None:
        if self.reset_interval < 0:
            raise ValueError("reset_interval must be non-negative")

    def _create(self, dimension: int) -> "PowellAlgorithm":
        return PowellAlgorithm(self, dimension)


class PowellAlgorithm(Algorithm):
    """Per-run state of :class:`PowellOptimizer`."""

    def __init__(self, factory: PowellOptimizer, dimension: int) -> None:
        super().__init__(factory, dimension)
        self._line_search: LineSearchAlgorithm = factory.line_search.create()
        self.directions = np.eye(dimension)

    def _line_minimize(self, x: Array, direction: Array) -> Tuple[float, float, int]:
        # line-search results are used even without a proper classification
        self._line_search.function = LineFunction(x, direction, self._function.value)
        result = self._line_search.find_minimum(0.0)
        return result.argmin, result.minimum, result.evaluations

    def _minimize(self, x: Array) -> State:
        n = self.dimension
        abort = self.factory.abort_condition
        reset_interval = self.factory.reset_interval

        self.directions = np.eye(n)
        x0 = x.copy()
        minimum = self._function.value(x)
        evaluations = 1

        for iteration in range(1, abort.max_iterations + 1):
            if reset_interval > 0 and iteration % reset_interval == 0:
                self.directions = np.eye(n)

            y0 = minimum
            delta = 0.0
            largest = -1
            for i in range(n):
                step, value, used = self._line_minimize(x, self.directions[i])
                evaluations += used
                x = x + step * self.directions[i]
                if minimum - value > delta:
                    delta = minimum - value
                    largest = i
                minimum = value

            logger.debug("Powell iteration %d: f=%.12g evaluations=%d", iteration, minimum, evaluations)
            if abort.is_satisfied(y0, minimum):
                logger.info("Powell converged after %d iterations (f=%.12g)", iteration, minimum)
                return State(
                    Classification.PROPER_RESULT,
                    x,
                    minimum,
                    evaluations,
                    iteration,
                    "relative decrease below tolerance",
                )
            if evaluations >= abort.max_evaluations:
                logger.info("Powell stopped: evaluation budget of %d exhausted", abort.max_evaluations)
                return State(
                    Classification.EVALUATION_LIMIT_EXCEEDED,
                    x,
                    minimum,
                    evaluations,
                    iteration,
                    "evaluation limit exceeded",
                )

            net = x - x0
            y_extrapolated = self._function.value(2.0 * x - x0)
            evaluations += 1
            x0 = x.copy()
            if y_extrapolated < y0 and largest >= 0:
                t = y0 - minimum - delta
                gap = y0 - y_extrapolated
                t = 2.0 * (y0 - 2.0 * minimum + y_extrapolated) * t * t - delta * gap * gap
                if t < 0.0:
                    step, value, used = self._line_minimize(x, net)
                    evaluations += used
                    x = x + step * net
                    minimum = value
                    new_direction = step * net
                    if np.any(new_direction != 0.0):
                        self.directions[largest] = self.directions[n - 1]
                        self.directions[n - 1] = new_direction

        logger.info("Powell stopped: iteration budget of %d exhausted", abort.max_iterations)
        return State(
            Classification.ITERATION_LIMIT_EXCEEDED,
            x,
            minimum,
            evaluations,
            abort.max_iterations,
            "iteration limit exceeded",
        )


__all__ = ["PowellOptimizer", "PowellAlgorithm"]
