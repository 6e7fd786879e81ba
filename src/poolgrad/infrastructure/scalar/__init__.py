from ._scalar import Scalar, derivative_check

__all__ = [Scalar.__name__, derivative_check.__name__]
