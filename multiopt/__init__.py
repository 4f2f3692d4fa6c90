"""multiopt - multi-dimensional optimization with constraint adapters."""

__version__ = "0.1.0"

# Feasible regions and projection
from .convex import (
    BoxProjection,
    BoxRegion,
    IdentityProjection,
    LinearEqualityRegion,
    LinearInequalityRegion,
    PolyhedralProjection,
    create_projection,
)

# Diagnostics and logging
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled
from .logging import configure_logging, get_logger, set_log_level

# Optimizers
from .optimize import (
    BOX_TRANSFORMATION,
    QUADRATIC_PENALTY,
    Classification,
    DimensionMismatchError,
    FunctionTypeError,
    LevenbergMarquardtAbortCondition,
    LevenbergMarquardtOptimizer,
    MultivariateFunction,
    NelderMeadAbortCondition,
    NelderMeadOptimizer,
    OrdinaryFunction,
    PowellAbortCondition,
    PowellOptimizer,
    PraxisAbortCondition,
    PraxisOptimizer,
    QuadraticPenaltyProvider,
    State,
    UnsupportedConstraintError,
)

__all__ = [
    "__version__",
    # Regions and projection
    "BoxRegion",
    "LinearInequalityRegion",
    "LinearEqualityRegion",
    "IdentityProjection",
    "BoxProjection",
    "PolyhedralProjection",
    "create_projection",
    # Optimizers
    "PowellOptimizer",
    "PowellAbortCondition",
    "LevenbergMarquardtOptimizer",
    "LevenbergMarquardtAbortCondition",
    "NelderMeadOptimizer",
    "NelderMeadAbortCondition",
    "PraxisOptimizer",
    "PraxisAbortCondition",
    "BOX_TRANSFORMATION",
    "QUADRATIC_PENALTY",
    "QuadraticPenaltyProvider",
    # Results and functions
    "State",
    "Classification",
    "OrdinaryFunction",
    "MultivariateFunction",
    # Errors
    "FunctionTypeError",
    "DimensionMismatchError",
    "UnsupportedConstraintError",
    # Diagnostics and logging
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
    "configure_logging",
    "get_logger",
    "set_log_level",
]
