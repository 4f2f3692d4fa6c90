"""Core interfaces shared across the multi-dimensional optimizers.

An optimizer (a :class:`MultiDimOptimizer`) is an immutable configuration
object. It spawns per-run :class:`Algorithm` instances through
:meth:`MultiDimOptimizer.create` (unconstrained) or
:meth:`MultiDimOptimizer.create_constrained`. The caller assigns a function
and calls :meth:`Algorithm.find_minimum`, which returns a :class:`State`.

Functions form a closed variant: :class:`OrdinaryFunction` (``R^n -> R``)
and :class:`MultivariateFunction` (``R^n -> R^k`` residuals with Jacobian).
Assigning the wrong variant or dimension is rejected immediately.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, Flag
from typing import Callable, ClassVar, Optional, Tuple, Type, Union

import numpy as np

from ..convex.regions import (
    BoxRegion,
    LinearEqualityRegion,
    LinearInequalityRegion,
    Region,
    common_dimension,
)
from ..convex.utils import as_vector
from .utils import approx_jacobian

Array = np.ndarray
Objective = Callable[[Array], float]
Residual = Callable[[Array], Array]
Jacobian = Callable[[Array], Array]


class FunctionTypeError(TypeError):
    """A function variant was assigned to an algorithm expecting another one."""


class DimensionMismatchError(ValueError):
    """Dimensions of a function, region or point disagree with the algorithm."""


class UnsupportedConstraintError(ValueError):
    """The optimizer cannot handle the requested kind of feasible region."""


class Classification(Enum):
    """Outcome of a minimization run."""

    PROPER_RESULT = "proper_result"
    ITERATION_LIMIT_EXCEEDED = "iteration_limit_exceeded"
    EVALUATION_LIMIT_EXCEEDED = "evaluation_limit_exceeded"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class State:
    """
    Result of :meth:`Algorithm.find_minimum`.

    Attributes:
        classification: How the run ended.
        x: Best point found (argmin estimate).
        minimum: Objective value at ``x``; ``||r(x)||^2`` for least squares.
        evaluations: Number of function evaluations consumed.
        iterations: Number of outer iterations performed.
        message: Human-readable description of the outcome.
    """

    classification: Classification
    x: Array
    minimum: float
    evaluations: int
    iterations: int
    message: str = ""

    @property
    def success(self) -> bool:
        return self.classification is Classification.PROPER_RESULT


def _check_dimension(value: int, name: str) -> int:
    if isinstance(value, bool) or int(value) != value or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return int(value)


class OrdinaryFunction:
    """Scalar objective ``f: R^n -> R``."""

    def __init__(self, dimension: int, fun: Objective) -> None:
        if not callable(fun):
            raise TypeError("fun must be callable")
        self.dimension = _check_dimension(dimension, "dimension")
        self.fun = fun

    def value(self, x: Array) -> float:
        return float(self.fun(x))

    def __call__(self, x: Array) -> float:
        return self.value(x)

    def __repr__(self) -> str:
        return f"OrdinaryFunction(dimension={self.dimension})"


class MultivariateFunction:
    """
    Residual function ``r: R^n -> R^k`` for least-squares problems.

    ``evaluate`` returns the residual vector and its ``k x n`` Jacobian from a
    single call. When no ``jac`` is supplied the Jacobian is approximated by
    central differences.
    """

    def __init__(
        self,
        dimension: int,
        codomain_dimension: int,
        fun: Residual,
        jac: Optional[Jacobian] = None,
        eps: float = 1e-6,
    ) -> None:
        if not callable(fun):
            raise TypeError("fun must be callable")
        if jac is not None and not callable(jac):
            raise TypeError("jac must be callable")
        if eps <= 0:
            raise ValueError("eps must be positive")
        self.dimension = _check_dimension(dimension, "dimension")
        self.codomain_dimension = _check_dimension(codomain_dimension, "codomain_dimension")
        self.fun = fun
        self.jac = jac
        self.eps = eps

    def residual(self, x: Array) -> Array:
        r = np.asarray(self.fun(x), dtype=float).reshape(-1)
        if r.shape[0] != self.codomain_dimension:
            raise ValueError(
                f"residual has length {r.shape[0]}, expected {self.codomain_dimension}"
            )
        return r

    def evaluate(self, x: Array) -> Tuple[Array, Array]:
        r = self.residual(x)
        if self.jac is not None:
            jacobian = np.asarray(self.jac(x), dtype=float)
        else:
            jacobian = approx_jacobian(self.residual, x, eps=self.eps)
        expected = (self.codomain_dimension, self.dimension)
        if jacobian.shape != expected:
            raise ValueError(f"Jacobian has shape {jacobian.shape}, expected {expected}")
        return r, jacobian

    def __repr__(self) -> str:
        return (
            f"MultivariateFunction(dimension={self.dimension}, "
            f"codomain_dimension={self.codomain_dimension})"
        )


Function = Union[OrdinaryFunction, MultivariateFunction]


class FunctionDescriptor(ABC):
    """Builds the function variant an optimizer expects."""

    function_type: ClassVar[Type]

    @abstractmethod
    def create(
        self,
        dimension: int,
        fun: Callable,
        codomain_dimension: Optional[int] = None,
        jac: Optional[Jacobian] = None,
    ) -> Function:
        """Wrap ``fun`` into the expected variant."""


class OrdinaryFunctionDescriptor(FunctionDescriptor):
    function_type = OrdinaryFunction

    def create(
        self,
        dimension: int,
        fun: Callable,
        codomain_dimension: Optional[int] = None,
        jac: Optional[Jacobian] = None,
    ) -> OrdinaryFunction:
        if codomain_dimension is not None or jac is not None:
            raise FunctionTypeError("an ordinary function takes no codomain dimension or Jacobian")
        return OrdinaryFunction(dimension, fun)


class MultivariateFunctionDescriptor(FunctionDescriptor):
    function_type = MultivariateFunction

    def create(
        self,
        dimension: int,
        fun: Callable,
        codomain_dimension: Optional[int] = None,
        jac: Optional[Jacobian] = None,
    ) -> MultivariateFunction:
        if codomain_dimension is None:
            raise FunctionTypeError("a multivariate function needs its codomain dimension")
        return MultivariateFunction(dimension, codomain_dimension, fun, jac)


ORDINARY_FUNCTIONS = OrdinaryFunctionDescriptor()
MULTIVARIATE_FUNCTIONS = MultivariateFunctionDescriptor()


class ConstraintType(Flag):
    """Kinds of feasible regions an optimizer or provider can handle."""

    NONE = 0
    BOX = 1
    LINEAR_INEQUALITY = 2
    LINEAR_EQUALITY = 4

    @classmethod
    def of_region(cls, region: Region) -> "ConstraintType":
        if isinstance(region, BoxRegion):
            return cls.BOX
        if isinstance(region, LinearInequalityRegion):
            return cls.LINEAR_INEQUALITY
        if isinstance(region, LinearEqualityRegion):
            return cls.LINEAR_EQUALITY
        raise UnsupportedConstraintError(f"unknown region type {type(region).__name__}")


@dataclass(frozen=True)
class Constraint:
    """Immutable descriptor of a feasible region accepted by an optimizer."""

    region: Region
    constraint_type: ConstraintType

    @property
    def dimension(self) -> int:
        return self.region.dimension


@dataclass(frozen=True)
class ConstraintDescriptor:
    """Creates :class:`Constraint` objects for the region kinds in ``supported``."""

    supported: ConstraintType

    def create(self, region: Region) -> Constraint:
        if isinstance(region, Constraint):
            region = region.region
        kind = ConstraintType.of_region(region)
        if not kind & self.supported:
            raise UnsupportedConstraintError(f"{kind.name} regions are not supported here")
        return Constraint(region, kind)


class Algorithm(ABC):
    """
    Per-run solver created by a :class:`MultiDimOptimizer`.

    Instances hold mutable scratch state and must not be shared between
    concurrent minimizations.
    """

    def __init__(self, factory: "MultiDimOptimizer", dimension: int) -> None:
        self._factory = factory
        self._dimension = _check_dimension(dimension, "dimension")
        self._function: Optional[Function] = None

    @property
    def factory(self) -> "MultiDimOptimizer":
        return self._factory

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def function(self) -> Optional[Function]:
        return self._function

    @function.setter
    def function(self, value: Function) -> None:
        expected = self._factory.function.function_type
        if not isinstance(value, expected):
            raise FunctionTypeError(
                f"{type(self).__name__} expects {expected.__name__}, got {type(value).__name__}"
            )
        if value.dimension != self._dimension:
            raise DimensionMismatchError(
                f"function has dimension {value.dimension}, algorithm has {self._dimension}"
            )
        self._function = value
        self._on_function_assigned()

    def set_function(
        self,
        fun: Callable,
        codomain_dimension: Optional[int] = None,
        jac: Optional[Jacobian] = None,
    ) -> Function:
        """Wrap ``fun`` with the factory's function descriptor and assign it."""
        function = self._factory.function.create(self._dimension, fun, codomain_dimension, jac)
        self.function = function
        return function

    def _on_function_assigned(self) -> None:
        """Hook for subclasses holding state derived from the function."""

    def find_minimum(self, x0: Array) -> State:
        """
        Minimize the assigned function starting from ``x0``.

        ``x0`` is not modified; the argmin estimate is ``state.x``.
        """
        if self._function is None:
            raise RuntimeError("no function assigned; set algorithm.function first")
        return self._minimize(check_point(x0, self._dimension))

    @abstractmethod
    def _minimize(self, x: Array) -> State:
        """Run the minimization loop on a private copy of the initial guess."""


class MultiDimOptimizer(ABC):
    """
    Immutable optimizer configuration and algorithm factory.

    Subclasses are frozen dataclasses; use :meth:`with_options` for modified
    copies.
    """

    name: ClassVar[str] = ""
    long_name: ClassVar[str] = ""
    is_random_algorithm: ClassVar[bool] = False
    function: ClassVar[FunctionDescriptor] = ORDINARY_FUNCTIONS

    @property
    @abstractmethod
    def constraint(self) -> ConstraintDescriptor:
        """Descriptor creating the constraints accepted by :meth:`create_constrained`."""

    def with_options(self, **changes) -> "MultiDimOptimizer":
        return dataclasses.replace(self, **changes)

    def create(self, dimension: int) -> Algorithm:
        """Create an algorithm for an unconstrained problem in ``R^dimension``."""
        return self._create(_check_dimension(dimension, "dimension"))

    def create_constrained(self, *constraints) -> Algorithm:
        """
        Create an algorithm for the intersection of ``constraints``.

        Accepts :class:`Constraint` objects or raw regions.

        Raises:
            ValueError: No constraints or inconsistent dimensions.
            UnsupportedConstraintError: A region kind the optimizer cannot handle.
        """
        if len(constraints) == 1 and isinstance(constraints[0], (list, tuple)):
            constraints = tuple(constraints[0])
        if not constraints:
            raise ValueError("at least one constraint is required")
        descriptor = self.constraint
        normalized = tuple(descriptor.create(item) for item in constraints)
        common_dimension([item.region for item in normalized])
        return self._create_constrained(normalized)

    @abstractmethod
    def _create(self, dimension: int) -> Algorithm:
        """Build an unconstrained algorithm."""

    @abstractmethod
    def _create_constrained(self, constraints: Tuple[Constraint, ...]) -> Algorithm:
        """Build an algorithm for validated, dimension-consistent constraints."""

    def __str__(self) -> str:
        return self.long_name or self.name or type(self).__name__


class OrdinaryOptimizer(MultiDimOptimizer):
    """
    Optimizer for scalar objectives without native constraint support.

    Constraints are delegated to the ``constraint_provider`` field that
    concrete subclasses declare.
    """

    function: ClassVar[FunctionDescriptor] = ORDINARY_FUNCTIONS

    @property
    def constraint(self) -> ConstraintDescriptor:
        return ConstraintDescriptor(self.constraint_provider.supported_constraints)

    def _create_constrained(self, constraints: Tuple[Constraint, ...]) -> Algorithm:
        return self.constraint_provider.create(self, constraints)


class MultivariateOptimizer(MultiDimOptimizer):
    """Optimizer for least-squares problems given as residual functions."""

    function: ClassVar[FunctionDescriptor] = MULTIVARIATE_FUNCTIONS


def check_point(x: Array, dimension: int) -> Array:
    """Return ``x`` as a fresh vector of length ``dimension``."""
    try:
        return as_vector(x, dimension)
    except ValueError as exc:
        raise DimensionMismatchError(str(exc)) from exc


__all__ = [
    "Array",
    "Objective",
    "Residual",
    "Jacobian",
    "FunctionTypeError",
    "DimensionMismatchError",
    "UnsupportedConstraintError",
    "Classification",
    "State",
    "OrdinaryFunction",
    "MultivariateFunction",
    "Function",
    "FunctionDescriptor",
    "OrdinaryFunctionDescriptor",
    "MultivariateFunctionDescriptor",
    "ORDINARY_FUNCTIONS",
    "MULTIVARIATE_FUNCTIONS",
    "ConstraintType",
    "Constraint",
    "ConstraintDescriptor",
    "Algorithm",
    "MultiDimOptimizer",
    "OrdinaryOptimizer",
    "MultivariateOptimizer",
    "check_point",
]
