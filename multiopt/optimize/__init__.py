"""Multi-dimensional local optimizers for multiopt.

Example
-------
>>> import numpy as np
>>> from multiopt.optimize import LevenbergMarquardtOptimizer
>>> algorithm = LevenbergMarquardtOptimizer().create(2)
>>> _ = algorithm.set_function(lambda x: x - np.array([1.0, 2.0]), codomain_dimension=2)
>>> state = algorithm.find_minimum(np.zeros(2))
>>> state.success, np.allclose(state.x, [1.0, 2.0])
(True, True)
"""

from .abort import (
    BrentAbortCondition,
    GoldenSectionAbortCondition,
    LevenbergMarquardtAbortCondition,
    NelderMeadAbortCondition,
    PowellAbortCondition,
    PraxisAbortCondition,
)
from .constraints import (
    BOX_TRANSFORMATION,
    QUADRATIC_PENALTY,
    BoxTransformationAlgorithm,
    BoxTransformationProvider,
    ConstraintProvider,
    QuadraticPenaltyAlgorithm,
    QuadraticPenaltyProvider,
)
from .core import (
    Algorithm,
    Classification,
    Constraint,
    ConstraintType,
    DimensionMismatchError,
    Function,
    FunctionTypeError,
    MultiDimOptimizer,
    MultivariateFunction,
    OrdinaryFunction,
    State,
    UnsupportedConstraintError,
)
from .levenberg import LevenbergMarquardtAlgorithm, LevenbergMarquardtOptimizer
from .line_search import (
    BrentLineSearch,
    DownhillBracketing,
    GoldenSectionSearch,
    LineFunction,
    LineSearch,
    LineSearchAlgorithm,
    LineSearchState,
)
from .nelder_mead import NelderMeadAlgorithm, NelderMeadOptimizer
from .powell import PowellAlgorithm, PowellOptimizer
from .praxis import PraxisAlgorithm, PraxisOptimizer
from .utils import approx_jacobian, lu_solve

__all__ = [
    "Algorithm",
    "BOX_TRANSFORMATION",
    "BoxTransformationAlgorithm",
    "BoxTransformationProvider",
    "BrentAbortCondition",
    "BrentLineSearch",
    "Classification",
    "Constraint",
    "ConstraintProvider",
    "ConstraintType",
    "DimensionMismatchError",
    "DownhillBracketing",
    "Function",
    "FunctionTypeError",
    "GoldenSectionAbortCondition",
    "GoldenSectionSearch",
    "LevenbergMarquardtAbortCondition",
    "LevenbergMarquardtAlgorithm",
    "LevenbergMarquardtOptimizer",
    "LineFunction",
    "LineSearch",
    "LineSearchAlgorithm",
    "LineSearchState",
    "MultiDimOptimizer",
    "MultivariateFunction",
    "NelderMeadAbortCondition",
    "NelderMeadAlgorithm",
    "NelderMeadOptimizer",
    "OrdinaryFunction",
    "PowellAbortCondition",
    "PowellAlgorithm",
    "PowellOptimizer",
    "PraxisAbortCondition",
    "PraxisAlgorithm",
    "PraxisOptimizer",
    "QUADRATIC_PENALTY",
    "QuadraticPenaltyAlgorithm",
    "QuadraticPenaltyProvider",
    "State",
    "UnsupportedConstraintError",
    "approx_jacobian",
    "lu_solve",
]
