"""
Euclidean projection onto feasible regions.

A projection maps a point ``p`` to ``argmin_z 0.5 ||z - p||^2`` over the
intersection of the supplied regions. Boxes are handled in closed form by
clipping; any combination involving general linear (in)equalities is solved
as a quadratic program with ``H = I`` and ``g = -p`` by
:func:`multiopt.convex.qp.solve_qp`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np

from ..logging import get_logger
from .core import QPProblem, Status
from .qp import solve_qp
from .regions import (
    BoxRegion,
    LinearEqualityRegion,
    LinearInequalityRegion,
    Region,
    common_dimension,
)
from .utils import as_vector, project_box

logger = get_logger(__name__)


class FeasibleSetProjection(ABC):
    """Nearest-point map onto a feasible set."""

    def __init__(self, dimension: int) -> None:
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self.dimension = int(dimension)

    @abstractmethod
    def project(self, x: np.ndarray) -> np.ndarray:
        """Return the feasible point closest to ``x``; ``x`` is left untouched."""

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.project(x)


class IdentityProjection(FeasibleSetProjection):
    """Projection onto the whole space."""

    def project(self, x: np.ndarray) -> np.ndarray:
        return as_vector(x, self.dimension)


class BoxProjection(FeasibleSetProjection):
    """Closed-form projection onto a :class:`BoxRegion`."""

    def __init__(self, box: BoxRegion) -> None:
        super().__init__(box.dimension)
        self.box = box

    def project(self, x: np.ndarray) -> np.ndarray:
        return project_box(as_vector(x, self.dimension), self.box.lower, self.box.upper)


class PolyhedralProjection(FeasibleSetProjection):
    """
    Projection onto an intersection of boxes and linear (in)equality regions.

    Every returned point is accepted by ``contains`` of each region: the
    quadratic program is solved to the smallest tolerance among the regions.

    Raises:
        ValueError: From :meth:`project` when the regions have no common
            point, and on construction when the boxes do not intersect.
        RuntimeError: From :meth:`project` when the solver runs out of
            iterations.
    """

    def __init__(
        self,
        regions: Sequence[Region],
        maxiter: Optional[int] = None,
        tol: float = 1e-10,
    ) -> None:
        dimension = common_dimension(regions)
        if dimension is None:
            raise ValueError("PolyhedralProjection needs at least one region")
        super().__init__(dimension)
        self.regions = tuple(regions)
        self.maxiter = maxiter

        lower = np.full(dimension, -np.inf)
        upper = np.full(dimension, np.inf)
        g_blocks = []
        h_blocks = []
        a_blocks = []
        b_blocks = []
        for region in self.regions:
            if isinstance(region, BoxRegion):
                lower = np.maximum(lower, region.lower)
                upper = np.minimum(upper, region.upper)
            elif isinstance(region, LinearInequalityRegion):
                g_mat, h_vec = region.to_inequalities()
                g_blocks.append(g_mat)
                h_blocks.append(h_vec)
                tol = min(tol, region.tolerance)
            elif isinstance(region, LinearEqualityRegion):
                a_mat, b_vec = region.to_equalities()
                a_blocks.append(a_mat)
                b_blocks.append(b_vec)
                tol = min(tol, region.tolerance)
            else:
                raise TypeError(f"cannot project onto region of type {type(region).__name__}")
        if np.any(lower > upper):
            raise ValueError("box regions have an empty intersection")

        self.tol = tol
        self.problem = QPProblem(
            H=np.eye(dimension),
            g=np.zeros(dimension),
            A=np.vstack(a_blocks) if a_blocks else None,
            b=np.concatenate(b_blocks) if b_blocks else None,
            G=np.vstack(g_blocks) if g_blocks else None,
            h=np.concatenate(h_blocks) if h_blocks else None,
            lb=lower,
            ub=upper,
        )

    def project(self, x: np.ndarray) -> np.ndarray:
        point = as_vector(x, self.dimension)
        result = solve_qp(replace(self.problem, g=-point), maxiter=self.maxiter, tol=self.tol)
        if result.status is Status.INFEASIBLE:
            raise ValueError("regions have no common point")
        if result.status is not Status.OPTIMAL:
            logger.error(
                "projection QP ended with status %s after %d steps",
                result.status.value,
                result.nit,
            )
            raise RuntimeError(f"projection failed: {result.message}")
        return result.x


def create_projection(
    dimension: Optional[int] = None, regions: Sequence[Region] = ()
) -> FeasibleSetProjection:
    """
    Pick the cheapest projection able to handle ``regions``.

    No regions give the identity, boxes only give clipping onto their
    intersection, anything else is solved as a quadratic program.
    """

    regions = tuple(regions)
    region_dim = common_dimension(regions)
    if region_dim is None:
        if dimension is None:
            raise ValueError("dimension is required when no regions are given")
        return IdentityProjection(dimension)
    if dimension is not None and dimension != region_dim:
        raise ValueError(f"regions have dimension {region_dim}, expected {dimension}")

    if all(isinstance(region, BoxRegion) for region in regions):
        if len(regions) == 1:
            return BoxProjection(regions[0])
        lower = np.max([region.lower for region in regions], axis=0)
        upper = np.min([region.upper for region in regions], axis=0)
        return BoxProjection(BoxRegion(lower, upper))
    return PolyhedralProjection(regions)


__all__ = [
    "FeasibleSetProjection",
    "IdentityProjection",
    "BoxProjection",
    "PolyhedralProjection",
    "create_projection",
]
