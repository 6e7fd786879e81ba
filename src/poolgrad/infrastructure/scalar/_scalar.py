"""
Autodiff-aware scalar values.

`Scalar` wraps a single Python float. Arithmetic on scalars records a
`History` so that `backward()` can compute derivatives of any scalar
expression with respect to its leaves:

    x = Scalar(3.0)
    y = x * x
    y.backward()
    x.grad  # 6.0
"""

from __future__ import annotations

from numbers import Real
from typing import Any, Optional, Sequence, Tuple, Union

from ...domain._errors import GradientMissingError
from .._autodiff import backpropagate, central_difference
from .._autograd_graph import Context, History, OpKind, function_for
from ..ops._operators import CLOSE_TOL

# Bind every scalar OpKind before any Scalar is built.
from . import _scalar_functions  # noqa: F401

ScalarLike = Union["Scalar", int, float]


class Scalar:
    """
    A float that participates in the computation graph.

    Parameters
    ----------
    value : float
        Forward value.
    history : Optional[History]
        Producing operation record. None for leaves.
    requires_grad : bool
        Whether a leaf accumulates gradients. Ignored for non-leaves.
    name : Optional[str]
        Optional label used in `repr`.
    """

    __slots__ = ("_data", "_grad", "_history", "_requires_grad", "name")

    def __init__(
        self,
        value: float,
        history: Optional[History] = None,
        requires_grad: bool = True,
        name: Optional[str] = None,
    ) -> None:
        self._data = float(value)
        self._grad: Optional[float] = None
        self._history = history
        self._requires_grad = True if history is not None else bool(requires_grad)
        self.name = name

    # ------------------------------------------------------------------
    # Graph state
    # ------------------------------------------------------------------
    @property
    def data(self) -> float:
        return self._data

    @data.setter
    def data(self, value: float) -> None:
        if self._history is not None:
            raise RuntimeError("Cannot assign data to a non-leaf Scalar")
        self._data = float(value)

    @property
    def grad(self) -> Optional[float]:
        return self._grad

    @property
    def history(self) -> Optional[History]:
        return self._history

    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        if self._history is not None:
            raise RuntimeError("requires_grad can only be changed on leaves")
        self._requires_grad = bool(value)

    @property
    def parents(self) -> Tuple["Scalar", ...]:
        return () if self._history is None else self._history.inputs

    def is_leaf(self) -> bool:
        return self._history is None

    def is_constant(self) -> bool:
        return self._history is None and not self._requires_grad

    def accumulate_grad_(self, grad: float) -> None:
        self._grad = grad if self._grad is None else self._grad + grad

    def zero_grad_(self) -> None:
        self._grad = None

    def grad_or_raise(self) -> float:
        """
        Return the accumulated gradient.

        Raises
        ------
        GradientMissingError
            If no gradient has been accumulated since creation or the last
            `zero_grad_`.
        """
        if self._grad is None:
            raise GradientMissingError(f"{self!r} has no gradient")
        return self._grad

    def backward(self, grad_output: Optional[float] = None) -> None:
        """
        Backpropagate from this scalar, seeding with 1.0 by default.
        """
        d_out = 1.0 if grad_output is None else float(grad_output)
        backpropagate(self, d_out)

    # ------------------------------------------------------------------
    # Operation plumbing
    # ------------------------------------------------------------------
    @staticmethod
    def _lift(value: Any) -> "Scalar":
        if isinstance(value, Scalar):
            return value
        if isinstance(value, Real) and not isinstance(value, bool):
            return Scalar(float(value), requires_grad=False)
        raise TypeError(f"Unsupported operand type for Scalar: {type(value).__name__}")

    @classmethod
    def apply(cls, kind: OpKind, *values: ScalarLike) -> "Scalar":
        """
        Run the function bound to `kind` and record its history.
        """
        inputs = tuple(cls._lift(v) for v in values)
        ctx = Context()
        out = function_for(kind).forward(ctx, *(v.data for v in inputs))
        return cls(out, History(kind, ctx, inputs))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def add(self, other: ScalarLike) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_ADD, self, other)

    def sub(self, other: ScalarLike) -> "Scalar":
        return self.add(Scalar._lift(other).neg())

    def mul(self, other: ScalarLike) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_MUL, self, other)

    def div(self, other: ScalarLike) -> "Scalar":
        return self.mul(Scalar._lift(other).inv())

    def neg(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_NEG, self)

    def inv(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_INV, self)

    def log(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_LOG, self)

    def exp(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_EXP, self)

    def sigmoid(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_SIGMOID, self)

    def relu(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_RELU, self)

    def leaky_relu(self) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_LEAKY_RELU, self)

    def lt(self, other: ScalarLike) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_LT, self, other)

    def gt(self, other: ScalarLike) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_LT, other, self)

    def eq(self, other: ScalarLike) -> "Scalar":
        return Scalar.apply(OpKind.SCALAR_EQ, self, other)

    def is_close(self, other: ScalarLike) -> "Scalar":
        # |a - b| < tol, built from differentiable pieces with zero gradient
        diff = self.sub(other)
        return diff.lt(CLOSE_TOL).mul(diff.gt(-CLOSE_TOL))

    # ------------------------------------------------------------------
    # Python operators
    # ------------------------------------------------------------------
    def __add__(self, other: ScalarLike) -> "Scalar":
        return self.add(other)

    def __radd__(self, other: ScalarLike) -> "Scalar":
        return Scalar._lift(other).add(self)

    def __sub__(self, other: ScalarLike) -> "Scalar":
        return self.sub(other)

    def __rsub__(self, other: ScalarLike) -> "Scalar":
        return Scalar._lift(other).sub(self)

    def __mul__(self, other: ScalarLike) -> "Scalar":
        return self.mul(other)

    def __rmul__(self, other: ScalarLike) -> "Scalar":
        return Scalar._lift(other).mul(self)

    def __truediv__(self, other: ScalarLike) -> "Scalar":
        return self.div(other)

    def __rtruediv__(self, other: ScalarLike) -> "Scalar":
        return Scalar._lift(other).div(self)

    def __neg__(self) -> "Scalar":
        return self.neg()

    def __lt__(self, other: ScalarLike) -> "Scalar":
        return self.lt(other)

    def __gt__(self, other: ScalarLike) -> "Scalar":
        return self.gt(other)

    def __float__(self) -> float:
        return self._data

    def __bool__(self) -> bool:
        return bool(self._data)

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        label = f", name={self.name!r}" if self.name else ""
        return f"Scalar({self._data}{label})"


def derivative_check(f, *scalars: Scalar, atol: float = 1e-4) -> Sequence[Tuple[float, float]]:
    """
    Compare autodiff gradients of `f` against centered finite differences.

    Returns
    -------
    Sequence[Tuple[float, float]]
        ``(autodiff, numeric)`` per argument.

    Raises
    ------
    AssertionError
        If any pair differs by more than `atol`.
    """
    for s in scalars:
        s.zero_grad_()
    out = f(*scalars)
    out.backward()

    raw = [s.data for s in scalars]
    results = []
    for i, s in enumerate(scalars):
        numeric = central_difference(
            lambda *v: f(*(Scalar(x) for x in v)).data, *raw, arg=i
        )
        auto = 0.0 if s.grad is None else s.grad
        if abs(auto - numeric) > atol:
            raise AssertionError(
                f"Derivative check failed for argument {i}: "
                f"autodiff={auto} numeric={numeric}"
            )
        results.append((auto, numeric))
    return results
