"""
Feasible regions and Euclidean projection onto them.

The projection of a point onto a polyhedral region is computed with a small
dual active-set quadratic program solver; boxes are clipped directly.
"""

from . import core, projection, qp, regions, utils
from .core import QPProblem, QPResult, Status
from .projection import (
    BoxProjection,
    FeasibleSetProjection,
    IdentityProjection,
    PolyhedralProjection,
    create_projection,
)
from .qp import active_set_qp, solve_qp
from .regions import (
    BoundaryType,
    BoxRegion,
    LinearEqualityRegion,
    LinearInequalityRegion,
    Region,
)

__all__ = [
    "core",
    "projection",
    "qp",
    "regions",
    "utils",
    # Core types
    "Status",
    "QPProblem",
    "QPResult",
    # Regions
    "BoundaryType",
    "Region",
    "BoxRegion",
    "LinearInequalityRegion",
    "LinearEqualityRegion",
    # Projection
    "FeasibleSetProjection",
    "IdentityProjection",
    "BoxProjection",
    "PolyhedralProjection",
    "create_projection",
    "active_set_qp",
    "solve_qp",
]
