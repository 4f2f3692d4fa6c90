"""Deterministic one-dimensional minimization used by Powell's method.

A line search runs in two stages following Press et al., *Numerical
Recipes* (2007), section 10.1-10.3:

1. :class:`DownhillBracketing` finds a triple ``a < b < c`` with
   ``f(b) <= min(f(a), f(c))`` by walking downhill with golden-ratio
   magnification and parabolic extrapolation.
2. The bracket is shrunk to the requested tolerance, either by Brent's
   method (parabolic interpolation with golden-section fallback, no
   derivatives) or by plain golden-section search.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Optional, Tuple

import numpy as np

from ..logging import get_logger
from .abort import BrentAbortCondition, GoldenSectionAbortCondition
from .core import Array, Classification, Objective

logger = get_logger(__name__)

GOLDEN_RATIO = 0.5 * (1.0 + math.sqrt(5.0))
# Golden-section fraction 1 - 1/phi
CGOLD = 0.3819660112501051
_TINY = 1e-20


@dataclass(frozen=True)
class LineFunction:
    """
    Objective restricted to the line ``base + t * direction``.

    Holds its own copies of ``base`` and ``direction`` so later updates of the
    caller's buffers do not leak into a running line search.
    """

    base: Array
    direction: Array
    objective: Objective

    def __post_init__(self) -> None:
        base = np.array(self.base, dtype=float, copy=True).reshape(-1)
        direction = np.array(self.direction, dtype=float, copy=True).reshape(-1)
        if base.shape != direction.shape:
            raise ValueError("base and direction must have the same shape")
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "direction", direction)

    def point(self, t: float) -> Array:
        return self.base + t * self.direction

    def __call__(self, t: float) -> float:
        return float(self.objective(self.point(t)))


@dataclass(frozen=True)
class Bracket:
    """Bracketing triple ``a < b < c`` (or its best guess) with function values."""

    a: float
    b: float
    c: float
    fa: float
    fb: float
    fc: float
    evaluations: int
    found: bool


@dataclass(frozen=True)
class DownhillBracketing:
    """
    Downhill search for a triple bracketing a minimum.

    Args:
        max_evaluations: Evaluation budget of the bracketing stage.
        max_magnifier: Largest parabolic extrapolation step, relative to the
            last interval.
        magnifier_ratio: Default magnification of successive intervals.
        left_shift, right_shift: Offsets of the outer initial points from the
            guess.
    """

    max_evaluations: int = 100
    max_magnifier: float = 10.0
    magnifier_ratio: float = GOLDEN_RATIO
    left_shift: float = -100.0
    right_shift: float = 100.0

    def __post_init__(self) -> None:
        if self.max_evaluations <= 3:
            raise ValueError("max_evaluations must exceed 3")
        if self.magnifier_ratio <= 1.0:
            raise ValueError("magnifier_ratio must be greater than 1")
        if self.max_magnifier < self.magnifier_ratio:
            raise ValueError("max_magnifier must not be smaller than magnifier_ratio")
        if not self.left_shift < 0.0 < self.right_shift:
            raise ValueError("left_shift must be negative and right_shift positive")

    def bracket(self, fun: Callable[[float], float], guess: float) -> Bracket:
        left = guess + self.left_shift
        right = guess + self.right_shift
        f_left = fun(left)
        f_mid = fun(guess)
        f_right = fun(right)
        evaluations = 3
        if f_mid <= f_left and f_mid <= f_right:
            return Bracket(left, guess, right, f_left, f_mid, f_right, evaluations, True)

        # walk downhill from the guess towards the lower outer point
        if f_left < f_right:
            ax, bx, fa, fb = guess, left, f_mid, f_left
        else:
            ax, bx, fa, fb = guess, right, f_mid, f_right
        ratio = self.magnifier_ratio
        cx = bx + ratio * (bx - ax)
        fc = fun(cx)
        evaluations += 1

        while fb > fc:
            if evaluations >= self.max_evaluations:
                return self._best_of(ax, bx, cx, fa, fb, fc, evaluations)
            r = (bx - ax) * (fb - fc)
            q = (bx - cx) * (fb - fa)
            denom = 2.0 * math.copysign(max(abs(q - r), _TINY), q - r)
            u = bx - ((bx - cx) * q - (bx - ax) * r) / denom
            ulim = bx + self.max_magnifier * (cx - bx)
            if (bx - u) * (u - cx) > 0.0:
                fu = fun(u)
                evaluations += 1
                if fu < fc:
                    return self._ordered(bx, u, cx, fb, fu, fc, evaluations)
                if fu > fb:
                    return self._ordered(ax, bx, u, fa, fb, fu, evaluations)
                u = cx + ratio * (cx - bx)
                fu = fun(u)
                evaluations += 1
            elif (cx - u) * (u - ulim) > 0.0:
                fu = fun(u)
                evaluations += 1
                if fu < fc:
                    bx, cx, u = cx, u, u + ratio * (u - cx)
                    fb, fc = fc, fu
                    fu = fun(u)
                    evaluations += 1
            elif (u - ulim) * (ulim - cx) >= 0.0:
                u = ulim
                fu = fun(u)
                evaluations += 1
            else:
                u = cx + ratio * (cx - bx)
                fu = fun(u)
                evaluations += 1
            ax, bx, cx = bx, cx, u
            fa, fb, fc = fb, fc, fu

        return self._ordered(ax, bx, cx, fa, fb, fc, evaluations)

    @staticmethod
    def _ordered(a, b, c, fa, fb, fc, evaluations: int) -> Bracket:
        if a > c:
            a, c, fa, fc = c, a, fc, fa
        return Bracket(a, b, c, fa, fb, fc, evaluations, True)

    @staticmethod
    def _best_of(a, b, c, fa, fb, fc, evaluations: int) -> Bracket:
        points = sorted([(a, fa), (b, fb), (c, fc)], key=lambda item: item[1])
        (xb, fxb), (x1, f1), (x2, f2) = points
        if x1 > x2:
            x1, x2, f1, f2 = x2, x1, f2, f1
        return Bracket(x1, xb, x2, f1, fxb, f2, evaluations, False)


@dataclass(frozen=True)
class LineSearchState:
    """Result of a 1-D minimization."""

    classification: Classification
    argmin: float
    minimum: float
    evaluations: int
    iterations: int

    @property
    def success(self) -> bool:
        return self.classification is Classification.PROPER_RESULT


class LineSearch(ABC):
    """
    Factory of one-dimensional minimizers.

    Implementations are immutable configurations; :meth:`create` returns a
    fresh :class:`LineSearchAlgorithm` that holds the per-run state.
    """

    name: ClassVar[str]
    bracketing: DownhillBracketing

    @abstractmethod
    def create(self) -> "LineSearchAlgorithm":
        """Return a new algorithm bound to this configuration."""


class LineSearchAlgorithm(ABC):
    """Single-use minimizer of a function ``R -> R``."""

    def __init__(self, factory: LineSearch) -> None:
        self.factory = factory
        self._function: Optional[Callable[[float], float]] = None

    @property
    def function(self) -> Optional[Callable[[float], float]]:
        return self._function

    @function.setter
    def function(self, value: Callable[[float], float]) -> None:
        if not callable(value):
            raise TypeError("line-search function must be callable")
        self._function = value

    def find_minimum(self, guess: float = 0.0) -> LineSearchState:
        if self._function is None:
            raise RuntimeError("no function assigned to the line search")
        bracket = self.factory.bracketing.bracket(self._function, float(guess))
        if not bracket.found:
            logger.warning("no bracketing triple found around %g", guess)
            return LineSearchState(
                Classification.UNKNOWN, bracket.b, bracket.fb, bracket.evaluations, 0
            )
        return self._refine(self._function, bracket)

    @abstractmethod
    def _refine(self, fun: Callable[[float], float], bracket: Bracket) -> LineSearchState:
        """Shrink a proper bracketing triple down to the tolerance."""


@dataclass(frozen=True)
class BrentLineSearch(LineSearch):
    """Factory of Brent line-search algorithms."""

    name: ClassVar[str] = "Brent"
    abort_condition: BrentAbortCondition = field(default_factory=BrentAbortCondition)
    bracketing: DownhillBracketing = field(default_factory=DownhillBracketing)

    def create(self) -> "BrentLineSearchAlgorithm":
        return BrentLineSearchAlgorithm(self)


class BrentLineSearchAlgorithm(LineSearchAlgorithm):
    """Parabolic interpolation with golden-section fallback, no derivatives."""

    def _refine(self, fun: Callable[[float], float], bracket: Bracket) -> LineSearchState:
        abort = self.factory.abort_condition
        a, b = bracket.a, bracket.c
        x = w = v = bracket.b
        fx = fw = fv = bracket.fb
        d = e = 0.0
        evaluations = bracket.evaluations

        for iteration in range(1, abort.max_iterations + 1):
            xm = 0.5 * (a + b)
            tol1 = abort.interval_tolerance(x)
            tol2 = 2.0 * tol1
            if abs(x - xm) <= tol2 - 0.5 * (b - a):
                return LineSearchState(Classification.PROPER_RESULT, x, fx, evaluations, iteration)
            if evaluations >= abort.max_evaluations:
                return LineSearchState(
                    Classification.EVALUATION_LIMIT_EXCEEDED, x, fx, evaluations, iteration
                )

            if abs(e) > tol1:
                # trial parabolic fit through x, v, w
                r = (x - w) * (fx - fv)
                q = (x - v) * (fx - fw)
                p = (x - v) * q - (x - w) * r
                q = 2.0 * (q - r)
                if q > 0.0:
                    p = -p
                q = abs(q)
                etemp = e
                e = d
                if abs(p) >= abs(0.5 * q * etemp) or p <= q * (a - x) or p >= q * (b - x):
                    e = a - x if x >= xm else b - x
                    d = CGOLD * e
                else:
                    d = p / q
                    u = x + d
                    if u - a < tol2 or b - u < tol2:
                        d = math.copysign(tol1, xm - x)
            else:
                e = a - x if x >= xm else b - x
                d = CGOLD * e

            u = x + d if abs(d) >= tol1 else x + math.copysign(tol1, d)
            fu = fun(u)
            evaluations += 1

            if fu <= fx:
                if u >= x:
                    a = x
                else:
                    b = x
                v, w, x = w, x, u
                fv, fw, fx = fw, fx, fu
            else:
                if u < x:
                    a = u
                else:
                    b = u
                if fu <= fw or w == x:
                    v, w = w, u
                    fv, fw = fw, fu
                elif fu <= fv or v == x or v == w:
                    v = u
                    fv = fu

        return LineSearchState(
            Classification.ITERATION_LIMIT_EXCEEDED, x, fx, evaluations, abort.max_iterations
        )


@dataclass(frozen=True)
class GoldenSectionSearch(LineSearch):
    """Factory of golden-section line-search algorithms."""

    name: ClassVar[str] = "Golden section"
    abort_condition: GoldenSectionAbortCondition = field(default_factory=GoldenSectionAbortCondition)
    bracketing: DownhillBracketing = field(default_factory=DownhillBracketing)

    def create(self) -> "GoldenSectionSearchAlgorithm":
        return GoldenSectionSearchAlgorithm(self)


class GoldenSectionSearchAlgorithm(LineSearchAlgorithm):
    """
    Golden-section search on a bracketing triple.

    Keeps four abscissae ``x0 < x1 < x2 < x3`` and drops one outer point per
    evaluation, so the interval shrinks by ``1 / GOLDEN_RATIO`` each step.
    """

    def _refine(self, fun: Callable[[float], float], bracket: Bracket) -> LineSearchState:
        abort = self.factory.abort_condition
        a, b, c = bracket.a, bracket.b, bracket.c
        x0, x3 = a, c
        if abs(c - b) > abs(b - a):
            x1, x2 = b, b + CGOLD * (c - b)
        else:
            x1, x2 = b - CGOLD * (b - a), b
        f1 = fun(x1)
        f2 = fun(x2)
        evaluations = bracket.evaluations + 2

        def best() -> Tuple[float, float]:
            return (x1, f1) if f1 < f2 else (x2, f2)

        for iteration in range(1, abort.max_iterations + 1):
            if abort.is_satisfied(x0, x1, x2, x3):
                return LineSearchState(Classification.PROPER_RESULT, *best(), evaluations, iteration)
            if evaluations >= abort.max_evaluations:
                return LineSearchState(
                    Classification.EVALUATION_LIMIT_EXCEEDED, *best(), evaluations, iteration
                )
            if f2 < f1:
                x0, x1 = x1, x2
                x2 = (1.0 - CGOLD) * x1 + CGOLD * x3
                f1 = f2
                f2 = fun(x2)
            else:
                x3, x2 = x2, x1
                x1 = (1.0 - CGOLD) * x2 + CGOLD * x0
                f2 = f1
                f1 = fun(x1)
            evaluations += 1

        return LineSearchState(
            Classification.ITERATION_LIMIT_EXCEEDED, *best(), evaluations, abort.max_iterations
        )


__all__ = [
    "GOLDEN_RATIO",
    "LineFunction",
    "Bracket",
    "DownhillBracketing",
    "LineSearchState",
    "LineSearch",
    "LineSearchAlgorithm",
    "BrentLineSearch",
    "BrentLineSearchAlgorithm",
    "GoldenSectionSearch",
    "GoldenSectionSearchAlgorithm",
]
