"""Brent's principal-axis method (PRAXIS).

Derivative-free minimization that runs Powell-style line searches along a set
of conjugate directions and periodically rebuilds those directions from the
singular value decomposition of the scaled direction matrix (Brent,
*Algorithms for Minimization without Derivatives* (1973), chapter 7). A
quadratic extrapolation along the curve through the last three end points
speeds up progress in curved valleys. When the problem looks
ill-conditioned the current point is perturbed at random, so the optimizer
carries a seed for its :class:`numpy.random.Generator`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ..logging import get_logger
from .abort import PraxisAbortCondition
from .constraints import BOX_TRANSFORMATION, ConstraintProvider
from .core import Algorithm, Array, Classification, Objective, OrdinaryOptimizer, State

logger = get_logger(__name__)

MACHINE_EPSILON = float(np.finfo(float).eps)
_SMALL = MACHINE_EPSILON**2
_VSMALL = _SMALL**2
_LARGE = 1.0 / _SMALL
_VLARGE = 1.0 / _VSMALL
_M2 = math.sqrt(MACHINE_EPSILON)
_M4 = math.sqrt(_M2)
# fraction by which the step-length estimate shrinks per inner step
_LDT_FACTOR = 0.01


@dataclass(frozen=True)
class PraxisOptimizer(OrdinaryOptimizer):
    """
    Brent's principal-axis optimizer.

    Args:
        abort_condition: Tolerances and budgets.
        constraint_provider: Strategy used by :meth:`create_constrained`.
        scaling_factor: Bound on the axis rescaling applied before each
            rebuild of the directions; ``1`` disables scaling, values around
            ``10`` help badly scaled problems.
        expected_distance: Rough distance from the initial guess to the
            minimum; also the largest step of a single line search.
        seed: Seed of the generator behind the random steps; runs with equal
            seeds are reproducible.

    Example:
        >>> optimizer = PraxisOptimizer()
        >>> algorithm = optimizer.create(2)
        >>> _ = algorithm.set_function(lambda x: (x[0] - 1) ** 2 + (x[1] + 2) ** 2)
        >>> state = algorithm.find_minimum(np.zeros(2))
        >>> np.allclose(state.x, [1.0, -2.0])
        True
    """

    abort_condition: PraxisAbortCondition = field(default_factory=PraxisAbortCondition)
    constraint_provider: ConstraintProvider = BOX_TRANSFORMATION
    scaling_factor: float = 1.0
    expected_distance: float = 1.0
    seed: Optional[int] = 0

    name = "Praxis"
    long_name = "Brent's principal axis optimizer"
    is_random_algorithm = True

    def __post_init__(self) -> None:
        if not 1.0 <= self.scaling_factor < math.inf:
            raise ValueError("scaling_factor must be a finite number of at least 1")
        if not 0.0 < self.expected_distance < math.inf:
            raise ValueError("expected_distance must be positive and finite")

    def _create(self, dimension: int) -> "PraxisAlgorithm":
        return PraxisAlgorithm(self, dimension)


class PraxisAlgorithm(Algorithm):
    """Per-run state of :class:`PraxisOptimizer`."""

    def _minimize(self, x: Array) -> State:
        rng = np.random.default_rng(self.factory.seed)
        return _PraxisRun(self._function.value, x, self.factory, rng).run()


class _PraxisRun:
    """
    One minimization run.

    ``directions`` holds the search directions as columns and ``curvature``
    the second-derivative estimates along them. ``q0``, ``q1`` are the end
    points of the two previous outer iterations, ``qd0``, ``qd1`` their
    distances, used by the quadratic extrapolation.
    """

    def __init__(
        self, objective: Objective, x: Array, factory: PraxisOptimizer, rng: np.random.Generator
    ) -> None:
        self.objective = objective
        self.abort = factory.abort_condition
        self.scaling_factor = factory.scaling_factor
        self.rng = rng
        self.n = x.size
        self.x = x
        self.fx = float(objective(x))
        self.evaluations = 1
        self.line_searches = 0

        self.t = _SMALL + self.abort.tolerance
        self.h = max(factory.expected_distance, 100.0 * self.t)
        self.ldt = self.h
        self.dmin = _SMALL
        self.directions = np.eye(self.n)
        self.curvature = np.zeros(self.n)

        self.q0 = x.copy()
        self.q1 = x.copy()
        self.qf1 = self.fx
        self.qd0 = 0.0
        self.qd1 = 0.0

    def _value_at(self, j: int, step: float) -> float:
        """Objective at ``step`` along direction ``j``, or along the space curve for ``j < 0``."""
        if j >= 0:
            point = self.x + step * self.directions[:, j]
        else:
            qa = step * (step - self.qd1) / (self.qd0 * (self.qd0 + self.qd1))
            qb = (step + self.qd0) * (self.qd1 - step) / (self.qd0 * self.qd1)
            qc = step * (step + self.qd0) / (self.qd1 * (self.qd0 + self.qd1))
            point = qa * self.q0 + qb * self.x + qc * self.q1
        self.evaluations += 1
        return float(self.objective(point))

    def _line_minimize(
        self, j: int, nits: int, d2: float, x1: float, f1: float, fk: bool
    ) -> Tuple[float, float]:
        """
        Minimize along direction ``j`` by fitting a parabola.

        ``d2`` is the current second-derivative estimate; ``x1``, ``f1`` a
        trial step and its value, which is only trusted when ``fk`` is set.
        Returns the updated estimate and the step taken. ``self.fx`` becomes
        the value at the new point and ``self.x`` moves there unless ``j``
        addresses the space curve.
        """
        sf1, sx1 = f1, x1
        k = 0
        xm = 0.0
        fm = f0 = self.fx
        dz = d2 < MACHINE_EPSILON

        norm_x = float(np.linalg.norm(self.x))
        curvature = self.dmin if dz else d2
        t2 = _M4 * math.sqrt(abs(self.fx) / curvature + norm_x * self.ldt) + _M2 * self.ldt
        s = _M4 * norm_x + self.t
        if dz and s < t2:
            t2 = s
        t2 = min(max(t2, _SMALL), 0.01 * self.h)

        if fk and f1 <= fm:
            xm, fm = x1, f1
        if not fk or abs(x1) < t2:
            x1 = t2 if x1 >= 0.0 else -t2
            f1 = self._value_at(j, x1)
        if f1 <= fm:
            xm, fm = x1, f1

        while True:
            if dz:
                # second point for the curvature estimate
                x2 = 2.0 * x1 if f1 <= f0 else -x1
                f2 = self._value_at(j, x2)
                if f2 <= fm:
                    xm, fm = x2, f2
                d2 = (x2 * (f1 - f0) - x1 * (f2 - f0)) / ((x1 * x2) * (x1 - x2))
            d1 = (f1 - f0) / x1 - x1 * d2
            dz = True

            if d2 <= _SMALL:
                x2 = -self.h if d1 >= 0.0 else self.h
            else:
                x2 = -0.5 * d1 / d2
            if abs(x2) > self.h:
                x2 = self.h if x2 > 0.0 else -self.h

            ok = True
            while True:
                f2 = self._value_at(j, x2)
                if k >= nits or f2 <= f0:
                    break
                k += 1
                if f0 < f1 and x1 * x2 > 0.0:
                    ok = False
                    break
                x2 *= 0.5
            if ok:
                break

        self.line_searches += 1
        if f2 > fm:
            x2 = xm
        else:
            fm = f2
        if abs(x2 * (x2 - x1)) > _SMALL:
            d2 = (x2 * (f1 - f0) - x1 * (fm - f0)) / ((x1 * x2) * (x1 - x2))
        elif k > 0:
            d2 = 0.0
        d2 = max(d2, _SMALL)

        x1 = x2
        self.fx = fm
        if sf1 < self.fx:
            self.fx = sf1
            x1 = sx1
        if j >= 0:
            self.x = self.x + x1 * self.directions[:, j]
        return d2, x1

    def _quadratic_extrapolation(self) -> None:
        """Move to the minimum of the parabola through ``q0``, ``q1`` and ``x``."""
        self.fx, self.qf1 = self.qf1, self.fx
        self.x, self.q1 = self.q1, self.x
        self.qd1 = float(np.linalg.norm(self.x - self.q1))

        if self.qd0 <= 0.0 or self.qd1 <= 0.0 or self.line_searches < 3 * self.n * self.n:
            self.fx = self.qf1
            qa, qb, qc = 0.0, 0.0, 1.0
        else:
            _, step = self._line_minimize(-1, 2, 0.0, self.qd1, self.qf1, True)
            qa = step * (step - self.qd1) / (self.qd0 * (self.qd0 + self.qd1))
            qb = -(step + self.qd0) * (step - self.qd1) / (self.qd0 * self.qd1)
            qc = step * (step + self.qd0) / (self.qd1 * (self.qd0 + self.qd1))

        self.qd0 = self.qd1
        previous = self.q0
        self.q0 = self.x
        self.x = qa * previous + qb * self.x + qc * self.q1

    def _rebuild_directions(self) -> bool:
        """Replace the directions by the principal axes; True if the problem looks ill-conditioned."""
        scale = 1.0 / np.sqrt(self.curvature)
        dn = float(scale.max())
        matrix = self.directions * (scale / dn)

        row_scale = None
        if self.scaling_factor > 1.0:
            row_scale = np.maximum(_M4, np.linalg.norm(matrix, axis=1))
            factors = row_scale.min() / row_scale
            row_scale = 1.0 / factors
            capped = row_scale > self.scaling_factor
            factors[capped] = 1.0 / self.scaling_factor
            row_scale[capped] = self.scaling_factor
            matrix = matrix * factors[:, np.newaxis]

        axes, singular, _ = np.linalg.svd(matrix)
        if row_scale is not None:
            axes = axes * row_scale[:, np.newaxis]
            lengths = np.linalg.norm(axes, axis=0)
            singular = singular * lengths
            axes = axes / lengths

        curvature = np.empty(self.n)
        for i, value in enumerate(dn * singular):
            if value > _LARGE:
                curvature[i] = _VSMALL
            elif value < _SMALL:
                curvature[i] = _VLARGE
            else:
                curvature[i] = 1.0 / (value * value)

        order = np.argsort(-curvature, kind="stable")
        self.curvature = curvature[order]
        self.directions = axes[:, order]
        self.dmin = max(float(self.curvature[-1]), _SMALL)
        return _M2 * self.curvature[0] > self.dmin

    def _state(self, classification: Classification, iteration: int, message: str) -> State:
        return State(classification, self.x.copy(), self.fx, self.evaluations, iteration, message)

    def run(self) -> State:
        n = self.n
        abort = self.abort
        illc = False
        accepted = 0
        t2 = self.t
        z = np.zeros(n)

        def finish_step(step_length: float, iteration: int) -> Optional[State]:
            nonlocal accepted, t2
            self.ldt = max(_LDT_FACTOR * self.ldt, step_length)
            t2 = _M2 * float(np.linalg.norm(self.x)) + self.t
            accepted = 0 if 0.5 * t2 < self.ldt else accepted + 1
            if accepted >= abort.required_accepted_points:
                logger.info("Praxis converged after %d iterations (f=%.12g)", iteration, self.fx)
                return self._state(Classification.PROPER_RESULT, iteration, "step length below tolerance")
            if self.evaluations >= abort.max_evaluations:
                logger.info("Praxis stopped: evaluation budget of %d exhausted", abort.max_evaluations)
                return self._state(
                    Classification.EVALUATION_LIMIT_EXCEEDED, iteration, "evaluation limit exceeded"
                )
            return None

        for iteration in range(1, abort.max_iterations + 1):
            previous = self.curvature[0]
            self.curvature[0] = 0.0
            self.curvature[0], s = self._line_minimize(0, 2, 0.0, 0.0, self.fx, False)
            if s <= 0.0:
                self.directions[:, 0] *= -1.0
            if previous <= 0.9 * self.curvature[0] or self.curvature[0] <= 0.9 * previous:
                self.curvature[1:] = 0.0
            if n == 1:
                state = finish_step(abs(s), iteration)
                if state is not None:
                    return state

            for k in range(1, n):
                y = self.x.copy()
                sf = self.fx
                if accepted > 0:
                    illc = True
                while True:
                    kl = k
                    df = 0.0
                    if illc:
                        z = (0.1 * self.ldt + t2 * 10.0**accepted) * (self.rng.random(n) - 0.5)
                        self.x = self.x + self.directions @ z
                        self.fx = float(self.objective(self.x))
                        self.evaluations += 1
                    # directions not yet conjugate
                    for k2 in range(k, n):
                        sl = self.fx
                        self.curvature[k2], s = self._line_minimize(
                            k2, 2, self.curvature[k2], 0.0, self.fx, False
                        )
                        s = self.curvature[k2] * (s + z[k2]) ** 2 if illc else sl - self.fx
                        if df <= s:
                            df = s
                            kl = k2
                    if illc or df >= abs(100.0 * MACHINE_EPSILON * self.fx):
                        break
                    illc = True
                for k2 in range(k):
                    self.curvature[k2], _ = self._line_minimize(
                        k2, 2, self.curvature[k2], 0.0, self.fx, False
                    )

                # replace direction kl by the normalized displacement of this step
                f1 = self.fx
                self.fx = sf
                step = self.x - y
                self.x = y
                lds = float(np.linalg.norm(step))
                if lds > _SMALL:
                    self.directions[:, k + 1 : kl + 1] = self.directions[:, k:kl].copy()
                    self.curvature[k + 1 : kl + 1] = self.curvature[k:kl].copy()
                    self.curvature[k] = 0.0
                    self.directions[:, k] = step / lds
                    self.curvature[k], lds = self._line_minimize(k, 4, 0.0, lds, f1, True)
                    if lds <= 0.0:
                        lds = -lds
                        self.directions[:, k] *= -1.0
                state = finish_step(lds, iteration)
                if state is not None:
                    return state

            self._quadratic_extrapolation()
            illc = self._rebuild_directions()
            logger.debug("Praxis iteration %d: f=%.12g evaluations=%d", iteration, self.fx, self.evaluations)

        logger.info("Praxis stopped: iteration budget of %d exhausted", abort.max_iterations)
        return self._state(
            Classification.ITERATION_LIMIT_EXCEEDED, abort.max_iterations, "iteration limit exceeded"
        )


__all__ = ["PraxisOptimizer", "PraxisAlgorithm"]
