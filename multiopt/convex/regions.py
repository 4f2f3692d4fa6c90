"""
Feasible regions consumed by the constrained optimizers.

Three region kinds are supported:

- :class:`BoxRegion`: per-dimension bounds ``lower <= x <= upper`` where each
  bound is independently finite or infinite.
- :class:`LinearInequalityRegion`: ``G x <= h``.
- :class:`LinearEqualityRegion`: ``A x = b`` up to a tolerance.

Every region reports ``distance(x)``: zero inside the region and the sum of
constraint violations outside of it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .utils import as_vector


class BoundaryType(Enum):
    """Shape of a single box dimension."""

    BOUNDED = "bounded"
    LOWER = "lower"
    UPPER = "upper"
    UNBOUNDED = "unbounded"


class Region(ABC):
    """Abstract feasible region in ``R^n``."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Dimension ``n`` of the ambient space."""

    @abstractmethod
    def distance(self, x: np.ndarray) -> float:
        """Return 0 for feasible points, a positive violation measure otherwise."""

    def contains(self, x: np.ndarray) -> bool:
        return self.distance(x) <= 0.0

    def to_inequalities(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(G, h)`` with ``G x <= h`` describing the region's inequalities."""
        return np.zeros((0, self.dimension)), np.zeros(0)

    def to_equalities(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(A, b)`` with ``A x = b`` describing the region's equalities."""
        return np.zeros((0, self.dimension)), np.zeros(0)


class BoxRegion(Region):
    """
    Axis-aligned box ``lower <= x <= upper``.

    ``-inf`` / ``+inf`` or ``nan`` entries denote a missing bound. A lower
    bound of ``+inf``, an upper bound of ``-inf`` or ``lower > upper`` are
    configuration errors.

    Example:
        >>> box = BoxRegion([0.0, -np.inf], [1.0, 5.0])
        >>> box.boundary_types[1]
        <BoundaryType.UPPER: 'upper'>
    """

    def __init__(self, lower, upper) -> None:
        lower_vec = np.array(lower, dtype=float, copy=True).reshape(-1)
        upper_vec = np.array(upper, dtype=float, copy=True).reshape(-1)
        if lower_vec.shape != upper_vec.shape:
            raise ValueError("lower and upper bounds must have the same length")
        if lower_vec.size == 0:
            raise ValueError("BoxRegion needs at least one dimension")

        lower_vec[np.isnan(lower_vec)] = -np.inf
        upper_vec[np.isnan(upper_vec)] = np.inf
        if np.any(lower_vec == np.inf):
            raise ValueError("lower bound must not be +inf")
        if np.any(upper_vec == -np.inf):
            raise ValueError("upper bound must not be -inf")
        if np.any(lower_vec > upper_vec):
            raise ValueError("lower bound exceeds upper bound")

        lower_vec.setflags(write=False)
        upper_vec.setflags(write=False)
        self._lower = lower_vec
        self._upper = upper_vec

    @classmethod
    def uniform(cls, dimension: int, lower: float, upper: float) -> "BoxRegion":
        """Box with the same bounds in every dimension."""
        if dimension < 1:
            raise ValueError("dimension must be positive")
        return cls(np.full(dimension, lower, dtype=float), np.full(dimension, upper, dtype=float))

    @property
    def dimension(self) -> int:
        return int(self._lower.shape[0])

    @property
    def lower(self) -> np.ndarray:
        return self._lower

    @property
    def upper(self) -> np.ndarray:
        return self._upper

    @property
    def boundary_types(self) -> Tuple[BoundaryType, ...]:
        types = []
        for lo, hi in zip(self._lower, self._upper):
            has_lower = np.isfinite(lo)
            has_upper = np.isfinite(hi)
            if has_lower and has_upper:
                types.append(BoundaryType.BOUNDED)
            elif has_lower:
                types.append(BoundaryType.LOWER)
            elif has_upper:
                types.append(BoundaryType.UPPER)
            else:
                types.append(BoundaryType.UNBOUNDED)
        return tuple(types)

    def distance(self, x: np.ndarray) -> float:
        x = as_vector(x, self.dimension)
        below = np.clip(self._lower - x, 0.0, None)
        above = np.clip(x - self._upper, 0.0, None)
        return float(np.sum(below) + np.sum(above))

    def to_inequalities(self) -> Tuple[np.ndarray, np.ndarray]:
        n = self.dimension
        eye = np.eye(n)
        lower_mask = np.isfinite(self._lower)
        upper_mask = np.isfinite(self._upper)
        g_mat = np.vstack([-eye[lower_mask], eye[upper_mask]])
        h_vec = np.concatenate([-self._lower[lower_mask], self._upper[upper_mask]])
        return g_mat, h_vec

    def __repr__(self) -> str:
        return f"BoxRegion(lower={self._lower.tolist()}, upper={self._upper.tolist()})"


class LinearInequalityRegion(Region):
    """Polyhedron ``G x <= h``; ``tolerance`` is the slack allowed by :meth:`contains`."""

    def __init__(self, G, h, tolerance: float = 1e-10) -> None:
        g_mat = np.array(G, dtype=float, copy=True)
        if g_mat.ndim == 1:
            g_mat = g_mat.reshape(1, -1)
        h_vec = np.array(h, dtype=float, copy=True).reshape(-1)
        if g_mat.ndim != 2 or g_mat.shape[0] == 0 or g_mat.shape[1] == 0:
            raise ValueError("G must be a non-empty 2-D matrix")
        if h_vec.shape[0] != g_mat.shape[0]:
            raise ValueError("h must have one entry per row of G")
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        g_mat.setflags(write=False)
        h_vec.setflags(write=False)
        self.G = g_mat
        self.h = h_vec
        self.tolerance = float(tolerance)

    @property
    def dimension(self) -> int:
        return int(self.G.shape[1])

    def distance(self, x: np.ndarray) -> float:
        x = as_vector(x, self.dimension)
        return float(np.sum(np.clip(self.G @ x - self.h, 0.0, None)))

    def contains(self, x: np.ndarray) -> bool:
        return self.distance(x) <= self.tolerance

    def to_inequalities(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.G, self.h


class LinearEqualityRegion(Region):
    """Affine subspace ``A x = b``; ``tolerance`` is the residual allowed by :meth:`contains`."""

    def __init__(self, A, b, tolerance: float = 1e-10) -> None:
        a_mat = np.array(A, dtype=float, copy=True)
        if a_mat.ndim == 1:
            a_mat = a_mat.reshape(1, -1)
        b_vec = np.array(b, dtype=float, copy=True).reshape(-1)
        if a_mat.ndim != 2 or a_mat.shape[0] == 0 or a_mat.shape[1] == 0:
            raise ValueError("A must be a non-empty 2-D matrix")
        if b_vec.shape[0] != a_mat.shape[0]:
            raise ValueError("b must have one entry per row of A")
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        a_mat.setflags(write=False)
        b_vec.setflags(write=False)
        self.A = a_mat
        self.b = b_vec
        self.tolerance = float(tolerance)

    @property
    def dimension(self) -> int:
        return int(self.A.shape[1])

    def distance(self, x: np.ndarray) -> float:
        x = as_vector(x, self.dimension)
        return float(np.sum(np.abs(self.A @ x - self.b)))

    def contains(self, x: np.ndarray) -> bool:
        return self.distance(x) <= self.tolerance

    def to_equalities(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.A, self.b


def common_dimension(regions) -> Optional[int]:
    """
    Return the shared dimension of ``regions`` (``None`` when empty).

    Raises:
        ValueError: If the regions disagree on their dimension.
    """

    dims = {region.dimension for region in regions}
    if not dims:
        return None
    if len(dims) > 1:
        raise ValueError(f"regions have inconsistent dimensions: {sorted(dims)}")
    return dims.pop()


__all__ = [
    "BoundaryType",
    "Region",
    "BoxRegion",
    "LinearInequalityRegion",
    "LinearEqualityRegion",
    "common_dimension",
]
