"""Constraint providers: run an unconstrained algorithm on a constrained problem.

Two strategies are available:

- :data:`BOX_TRANSFORMATION` substitutes the variables so that every point of
  the unconstrained search space maps into the box:

  ========== ======================== ==============================
  boundary   forward ``t -> x``        inverse ``x -> t``
  ========== ======================== ==============================
  [a, b]     ``a + (b - a) sin^2 t``   ``asin(sqrt((x - a)/(b - a)))``
  [a, inf)   ``a + t^2``               ``sqrt(x - a)``
  (-inf, b]  ``b - t^2``               ``sqrt(b - x)``
  free       ``t``                     ``x``
  ========== ======================== ==============================

- :data:`QUADRATIC_PENALTY` replaces the objective outside the feasible set
  by ``last_feasible_value + relative_weight * d^2 + absolute_weight`` where
  ``d`` is the smallest distance to a violated region.

Both produce :class:`~multiopt.optimize.core.Algorithm` instances that wrap an
inner unconstrained algorithm of the same optimizer.
"""

from __future__ import annotations

import dataclasses
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Sequence, Tuple

import numpy as np

from ..convex.regions import BoundaryType, BoxRegion, Region, common_dimension
from ..diagnostics import check_invariant
from ..logging import get_logger
from .core import (
    Algorithm,
    Array,
    Constraint,
    ConstraintType,
    MultiDimOptimizer,
    OrdinaryFunction,
    State,
)

logger = get_logger(__name__)


class ConstraintProvider(ABC):
    """Strategy turning an unconstrained optimizer into a constrained one."""

    name: ClassVar[str] = ""

    @property
    @abstractmethod
    def supported_constraints(self) -> ConstraintType:
        """Region kinds this provider can handle."""

    @abstractmethod
    def create(
        self, optimizer: MultiDimOptimizer, constraints: Sequence[Constraint]
    ) -> Algorithm:
        """Wrap an unconstrained algorithm of ``optimizer`` for ``constraints``."""


def intersect_boxes(boxes: Sequence[BoxRegion]) -> BoxRegion:
    """Return the box intersection of ``boxes``."""
    if len(boxes) == 1:
        return boxes[0]
    lower = np.max([box.lower for box in boxes], axis=0)
    upper = np.min([box.upper for box in boxes], axis=0)
    return BoxRegion(lower, upper)


@dataclass(frozen=True)
class BoxTransformationProvider(ConstraintProvider):
    """Handles box constraints by a change of variables."""

    name = "Box transformation"

    @property
    def supported_constraints(self) -> ConstraintType:
        return ConstraintType.BOX

    def create(self, optimizer, constraints) -> "BoxTransformationAlgorithm":
        box = intersect_boxes([constraint.region for constraint in constraints])
        inner = optimizer.create(box.dimension)
        return BoxTransformationAlgorithm(optimizer, box, inner)


class BoxTransformationAlgorithm(Algorithm):
    """Minimizes ``f(to_box(t))`` over unconstrained ``t`` with an inner algorithm."""

    def __init__(self, factory: MultiDimOptimizer, box: BoxRegion, inner: Algorithm) -> None:
        super().__init__(factory, box.dimension)
        if inner.dimension != box.dimension:
            raise ValueError("inner algorithm and box have different dimensions")
        self.box = box
        self.inner = inner
        self._boundary_types = box.boundary_types

    def to_box(self, t: Array) -> Array:
        """Forward map from the unconstrained space into the box."""
        t = np.asarray(t, dtype=float)
        lower = self.box.lower
        upper = self.box.upper
        x = np.empty(self.dimension)
        for j, kind in enumerate(self._boundary_types):
            if kind is BoundaryType.BOUNDED:
                s = math.sin(t[j])
                # rounding may overshoot the bounds by one ulp
                x[j] = min(max(lower[j] + (upper[j] - lower[j]) * s * s, lower[j]), upper[j])
            elif kind is BoundaryType.LOWER:
                x[j] = lower[j] + t[j] * t[j]
            elif kind is BoundaryType.UPPER:
                x[j] = upper[j] - t[j] * t[j]
            elif kind is BoundaryType.UNBOUNDED:
                x[j] = t[j]
            else:
                raise NotImplementedError(f"boundary type {kind!r}")
        return x

    def from_box(self, x: Array) -> Array:
        """Inverse map of :meth:`to_box` for points inside the box."""
        x = np.asarray(x, dtype=float)
        lower = self.box.lower
        upper = self.box.upper
        t = np.empty(self.dimension)
        for j, kind in enumerate(self._boundary_types):
            if kind is BoundaryType.BOUNDED:
                width = upper[j] - lower[j]
                if width == 0.0:
                    t[j] = 0.0
                else:
                    ratio = min(max((x[j] - lower[j]) / width, 0.0), 1.0)
                    t[j] = math.asin(math.sqrt(ratio))
            elif kind is BoundaryType.LOWER:
                t[j] = math.sqrt(max(x[j] - lower[j], 0.0))
            elif kind is BoundaryType.UPPER:
                t[j] = math.sqrt(max(upper[j] - x[j], 0.0))
            elif kind is BoundaryType.UNBOUNDED:
                t[j] = x[j]
            else:
                raise NotImplementedError(f"boundary type {kind!r}")
        return t

    def _on_function_assigned(self) -> None:
        self.inner.function = OrdinaryFunction(self.dimension, self._transformed_value)

    def _transformed_value(self, t: Array) -> float:
        x = self.to_box(t)
        check_invariant(self.box.contains(x), f"transformed point {x} left {self.box}")
        return self._function.value(x)

    def _minimize(self, x: Array) -> State:
        if not self.box.contains(x):
            raise ValueError(f"initial guess {x} is outside of {self.box}")
        state = self.inner.find_minimum(self.from_box(x))
        return dataclasses.replace(state, x=self.to_box(state.x))


@dataclass(frozen=True)
class QuadraticPenaltyProvider(ConstraintProvider):
    """
    Handles arbitrary supported regions by penalizing infeasible points.

    Args:
        relative_weight: Factor of the squared distance to the nearest
            violated region.
        absolute_weight: Constant added to every infeasible value.
    """

    relative_weight: float = 1e20
    absolute_weight: float = 0.0

    name = "Quadratic penalty"

    def __post_init__(self) -> None:
        if not self.relative_weight >= 0.0:
            raise ValueError("relative_weight must be non-negative")
        if not self.absolute_weight >= 0.0:
            raise ValueError("absolute_weight must be non-negative")

    @property
    def supported_constraints(self) -> ConstraintType:
        return ConstraintType.BOX | ConstraintType.LINEAR_INEQUALITY | ConstraintType.LINEAR_EQUALITY

    def create(self, optimizer, constraints) -> "QuadraticPenaltyAlgorithm":
        regions = tuple(constraint.region for constraint in constraints)
        inner = optimizer.create(common_dimension(regions))
        return QuadraticPenaltyAlgorithm(optimizer, regions, inner, self)


class QuadraticPenaltyAlgorithm(Algorithm):
    """
    Minimizes the penalized objective with an inner unconstrained algorithm.

    The first point the inner algorithm evaluates should be feasible; before
    that, ``last_feasible_value`` holds the largest finite float.
    """

    def __init__(
        self,
        factory: MultiDimOptimizer,
        regions: Tuple[Region, ...],
        inner: Algorithm,
        provider: QuadraticPenaltyProvider,
    ) -> None:
        dimension = common_dimension(regions)
        super().__init__(factory, dimension)
        self.regions = regions
        self.inner = inner
        self.relative_weight = provider.relative_weight
        self.absolute_weight = provider.absolute_weight
        self.last_feasible_value = float(np.finfo(float).max)

    def _on_function_assigned(self) -> None:
        self.last_feasible_value = float(np.finfo(float).max)
        self.inner.function = OrdinaryFunction(self.dimension, self.penalized_value)

    def penalty(self, distance: float) -> float:
        return self.last_feasible_value + self.relative_weight * distance * distance + self.absolute_weight

    def penalized_value(self, z: Array) -> float:
        violations = [region.distance(z) for region in self.regions if not region.contains(z)]
        if not violations:
            value = self._function.value(z)
            self.last_feasible_value = value
            return value
        return self.penalty(min(violations))

    def _minimize(self, x: Array) -> State:
        self.last_feasible_value = float(np.finfo(float).max)
        if not all(region.contains(x) for region in self.regions):
            logger.warning("quadratic penalty started from an infeasible point")
        state = self.inner.find_minimum(x)
        if not all(region.contains(state.x) for region in self.regions):
            logger.warning("quadratic penalty returned an infeasible point")
        return state


BOX_TRANSFORMATION = BoxTransformationProvider()
QUADRATIC_PENALTY = QuadraticPenaltyProvider()


__all__ = [
    "ConstraintProvider",
    "BoxTransformationProvider",
    "BoxTransformationAlgorithm",
    "QuadraticPenaltyProvider",
    "QuadraticPenaltyAlgorithm",
    "BOX_TRANSFORMATION",
    "QUADRATIC_PENALTY",
    "intersect_boxes",
]
