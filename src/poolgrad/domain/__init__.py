"""
Domain layer: backend-agnostic contracts and the engine error taxonomy.

Nothing in this package depends on NumPy or on concrete infrastructure
implementations.
"""

from ._errors import (
    PoolGradError,
    ShapeError,
    NumericDomainError,
    GradientMissingError,
    PoolExhaustedError,
)
from ._function import Function
from ._value import IValue
from ._parameter import IParameter
from ._module import IModule
from ._optimizers import IOptimizer

__all__ = [
    PoolGradError.__name__,
    ShapeError.__name__,
    NumericDomainError.__name__,
    GradientMissingError.__name__,
    PoolExhaustedError.__name__,
    Function.__name__,
    IValue.__name__,
    IParameter.__name__,
    IModule.__name__,
    IOptimizer.__name__,
]
