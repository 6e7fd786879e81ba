"""
Engine-level exceptions for poolgrad.

This module defines the error taxonomy raised by the autodiff engine. Every
error derives from :class:`PoolGradError` and additionally from the closest
builtin exception type, so callers may catch either the engine-specific class
or the generic Python category (e.g., ``ValueError``).

Propagation policy
------------------
- Shape and numeric-domain errors are raised immediately at the offending
  forward call. They indicate a programming error in graph construction and
  are never swallowed or retried by the engine.
- `GradientMissingError` is raised only when a caller explicitly asks for a
  gradient that was never populated (see ``grad_or_raise``). Plain ``.grad``
  access returns ``None`` instead of a stale value.
- `PoolExhaustedError` signals an unrecoverable allocation failure.
"""


class PoolGradError(Exception):
    """
    Base class for all poolgrad engine errors.
    """


class ShapeError(PoolGradError, ValueError):
    """
    Raised when shapes are incompatible.

    Typical causes
    --------------
    - two shapes cannot be broadcast together,
    - matrix-multiply inner dimensions disagree,
    - an index is out of bounds or has the wrong rank,
    - a gradient returned by a backward rule does not match its input shape.
    """


class NumericDomainError(PoolGradError, ValueError):
    """
    Raised when an operation is evaluated outside its valid numeric domain.

    Attributes
    ----------
    op : str
        Name of the operation (e.g., "log", "inv").
    """

    def __init__(self, op: str, message: str) -> None:
        """
        Initialize the NumericDomainError.

        Parameters
        ----------
        op : str
            Operation name that rejected its input.
        message : str
            Human-readable description of the rejected input.
        """
        super().__init__(f"{op}: {message}")
        self.op = op


class GradientMissingError(PoolGradError, RuntimeError):
    """
    Raised when a gradient is requested from a value that never received one.

    This usually means the value was not reachable from the root on which
    ``backward()`` was invoked, or its gradient was cleared via ``zero_grad_()``.
    """


class PoolExhaustedError(PoolGradError, MemoryError):
    """
    Raised when the storage pool cannot satisfy an allocation request.

    Attributes
    ----------
    requested : int
        Number of elements requested.
    outstanding : int
        Number of elements currently checked out of the pool.
    limit : int | None
        Configured element budget, or None when the failure came from the
        underlying allocator.
    """

    def __init__(self, requested: int, outstanding: int, limit=None) -> None:
        """
        Initialize the PoolExhaustedError.

        Parameters
        ----------
        requested : int
            Number of elements requested.
        outstanding : int
            Number of elements currently checked out of the pool.
        limit : int | None, optional
            Configured element budget, if any.
        """
        if limit is None:
            msg = f"allocation of {requested} elements failed ({outstanding} outstanding)"
        else:
            msg = (
                f"allocation of {requested} elements exceeds pool budget "
                f"{limit} ({outstanding} outstanding)"
            )
        super().__init__(msg)
        self.requested = requested
        self.outstanding = outstanding
        self.limit = limit
