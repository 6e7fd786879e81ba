"""
Autodiff-aware multi-dimensional tensors.

`Tensor` pairs a pooled `TensorData` payload with autograd state. Every
differentiable method goes through `Tensor.apply`, which lifts literals,
runs the `Function` bound to an `OpKind` on raw payloads, and records a
`History` on the result.

Gradients
---------
- ``grad`` is None until a backward pass reaches the tensor, then a
  `Tensor` of the same shape.
- Only leaves with ``requires_grad`` keep gradients. Literals lifted by an
  operation are constant leaves.
- ``backward()`` with no argument is only defined for single-element
  tensors; larger roots need an explicit upstream gradient.
"""

from __future__ import annotations

from numbers import Real
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._errors import GradientMissingError, ShapeError
from .._autodiff import backpropagate
from .._autograd_graph import Context, History, OpKind, function_for
from ..ops import _operators as operators
from ..ops._dispatch import tensor_map, tensor_reduce, tensor_zip

# Bind every tensor OpKind before any Tensor is built.
from .. import _tensor_functions  # noqa: F401
from ._tensor_data import Shape, TensorData

TensorLike = Union["Tensor", int, float]


class Tensor:
    """
    A pooled ``float64`` array that participates in the computation graph.

    Parameters
    ----------
    data : TensorData
        Forward payload.
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
        data: TensorData,
        history: Optional[History] = None,
        requires_grad: bool = True,
        name: Optional[str] = None,
    ) -> None:
        if not isinstance(data, TensorData):
            raise TypeError(f"Tensor expects TensorData, got {type(data).__name__}")
        self._data = data
        self._grad: Optional[Tensor] = None
        self._history = history
        self._requires_grad = True if history is not None else bool(requires_grad)
        self.name = name

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def zeros(cls, shape: Sequence[int], requires_grad: bool = True) -> "Tensor":
        return cls(TensorData.zeros(shape), requires_grad=requires_grad)

    @classmethod
    def ones(cls, shape: Sequence[int], requires_grad: bool = True) -> "Tensor":
        out = cls.zeros(shape, requires_grad=requires_grad)
        out._data.storage.fill(1.0)
        return out

    @classmethod
    def rand(
        cls,
        shape: Sequence[int],
        requires_grad: bool = True,
        rng: Optional[np.random.Generator] = None,
    ) -> "Tensor":
        """Uniform samples in ``[0, 1)``."""
        rng = np.random.default_rng() if rng is None else rng
        out = cls.zeros(shape, requires_grad=requires_grad)
        out._data.storage[:] = rng.random(out.size)
        return out

    @classmethod
    def tensor(cls, values: Any, requires_grad: bool = True) -> "Tensor":
        """Copy a (nested) sequence or array into a new leaf tensor."""
        return cls(TensorData.from_numpy(values), requires_grad=requires_grad)

    # ------------------------------------------------------------------
    # Graph state
    # ------------------------------------------------------------------
    @property
    def data(self) -> TensorData:
        return self._data

    @property
    def grad(self) -> Optional["Tensor"]:
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
    def parents(self) -> Tuple["Tensor", ...]:
        return () if self._history is None else self._history.inputs

    @property
    def shape(self) -> Shape:
        return self._data.shape

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def dims(self) -> int:
        return self._data.dims

    def is_leaf(self) -> bool:
        return self._history is None

    def is_constant(self) -> bool:
        return self._history is None and not self._requires_grad

    def accumulate_grad_(self, grad: TensorData) -> None:
        if grad.shape != self.shape:
            raise ShapeError(
                f"Gradient shape {grad.shape} does not match tensor shape {self.shape}"
            )
        if self._grad is None:
            # own the buffer: upstream grads may alias other tensors
            self._grad = Tensor(tensor_map(operators.identity, grad), requires_grad=False)
        else:
            self._grad = Tensor(
                tensor_zip(operators.add, self._grad.data, grad), requires_grad=False
            )

    def zero_grad_(self) -> None:
        self._grad = None

    def grad_or_raise(self) -> "Tensor":
        """
        Return the accumulated gradient.

        Raises
        ------
        GradientMissingError
            If no gradient has been accumulated since creation or the last
            `zero_grad_`.
        """
        if self._grad is None:
            raise GradientMissingError(f"Tensor of shape {self.shape} has no gradient")
        return self._grad

    def backward(self, grad_output: Optional[Any] = None) -> None:
        """
        Backpropagate from this tensor.

        Parameters
        ----------
        grad_output : Optional[Tensor | array-like]
            Upstream gradient with this tensor's shape. May be omitted for
            single-element tensors, which are seeded with ones.

        Raises
        ------
        ShapeError
            If `grad_output` is omitted for a multi-element tensor, or its
            shape differs from this tensor's.
        """
        if grad_output is None:
            if self.size != 1:
                raise ShapeError(
                    f"backward() on a tensor of shape {self.shape} needs an "
                    "explicit grad_output"
                )
            seed = TensorData.zeros(self.shape)
            seed.storage.fill(1.0)
        elif isinstance(grad_output, Tensor):
            seed = grad_output.data
        else:
            seed = TensorData.from_numpy(grad_output)

        if seed.shape != self.shape:
            raise ShapeError(
                f"grad_output shape {seed.shape} does not match tensor shape {self.shape}"
            )
        backpropagate(self, seed)

    # ------------------------------------------------------------------
    # Operation plumbing
    # ------------------------------------------------------------------
    @staticmethod
    def _lift(value: Any) -> "Tensor":
        if isinstance(value, Tensor):
            return value
        if isinstance(value, Real) and not isinstance(value, bool):
            data = TensorData.zeros(())
            data.storage[0] = float(value)
            return Tensor(data, requires_grad=False)
        raise TypeError(f"Unsupported operand type for Tensor: {type(value).__name__}")

    @classmethod
    def apply(cls, kind: OpKind, *values: TensorLike, args: Tuple = ()) -> "Tensor":
        """
        Run the function bound to `kind` and record its history.

        Parameters
        ----------
        kind : OpKind
            Operation to run.
        *values : Tensor | number
            Differentiable inputs. Numbers are lifted to constant tensors.
        args : tuple
            Non-differentiable arguments appended to the forward call
            (dimension, permutation order, target shape).
        """
        inputs = tuple(cls._lift(v) for v in values)
        ctx = Context()
        out = function_for(kind).forward(ctx, *(v.data for v in inputs), *args)
        return cls(out, History(kind, ctx, inputs))

    # ------------------------------------------------------------------
    # Elementwise
    # ------------------------------------------------------------------
    def add(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.ADD, self, other)

    def sub(self, other: TensorLike) -> "Tensor":
        return self.add(Tensor._lift(other).neg())

    def mul(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.MUL, self, other)

    def div(self, other: TensorLike) -> "Tensor":
        return self.mul(Tensor._lift(other).inv())

    def neg(self) -> "Tensor":
        return Tensor.apply(OpKind.NEG, self)

    def inv(self) -> "Tensor":
        return Tensor.apply(OpKind.INV, self)

    def log(self) -> "Tensor":
        return Tensor.apply(OpKind.LOG, self)

    def exp(self) -> "Tensor":
        return Tensor.apply(OpKind.EXP, self)

    def sigmoid(self) -> "Tensor":
        return Tensor.apply(OpKind.SIGMOID, self)

    def relu(self) -> "Tensor":
        return Tensor.apply(OpKind.RELU, self)

    def leaky_relu(self) -> "Tensor":
        return Tensor.apply(OpKind.LEAKY_RELU, self)

    def lt(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.LT, self, other)

    def gt(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.LT, other, self)

    def eq(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.EQ, self, other)

    def is_close(self, other: TensorLike) -> "Tensor":
        return Tensor.apply(OpKind.IS_CLOSE, self, other)

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------
    def sum(self, dim: Optional[int] = None) -> "Tensor":
        """
        Sum along `dim` (kept with size 1), or over every element into a
        tensor of shape ``(1,)`` when `dim` is None.
        """
        if dim is None:
            return self.contiguous().view(self.size).sum(0)
        return Tensor.apply(OpKind.SUM, self, args=(self._normalize_dim(dim),))

    def mean(self, dim: Optional[int] = None) -> "Tensor":
        count = self.size if dim is None else self.shape[self._normalize_dim(dim)]
        return self.sum(dim).mul(1.0 / count)

    def all(self, dim: Optional[int] = None) -> "Tensor":
        """1.0 where every element along `dim` is non-zero. Not differentiable."""
        if dim is None:
            flat = self.contiguous().view(self.size)
            return Tensor(
                tensor_reduce(operators.mul, flat.data, 0, 1.0), requires_grad=False
            )
        return Tensor(
            tensor_reduce(operators.mul, self._data, self._normalize_dim(dim), 1.0),
            requires_grad=False,
        )

    def _normalize_dim(self, dim: int) -> int:
        d = dim + self.dims if dim < 0 else dim
        if not 0 <= d < self.dims:
            raise ShapeError(f"Dimension {dim} out of range for shape {self.shape}")
        return d

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def permute(self, *order: int) -> "Tensor":
        return Tensor.apply(OpKind.PERMUTE, self, args=(tuple(order),))

    def view(self, *shape: int) -> "Tensor":
        """
        Reshape without copying. Requires contiguous data; call
        `contiguous()` first after a `permute`.
        """
        return Tensor.apply(OpKind.VIEW, self, args=(tuple(shape),))

    def contiguous(self) -> "Tensor":
        return Tensor.apply(OpKind.CONTIGUOUS, self)

    def matmul(self, other: "Tensor") -> "Tensor":
        return Tensor.apply(OpKind.MATMUL, self, other)

    # ------------------------------------------------------------------
    # In-place leaf updates (optimizers)
    # ------------------------------------------------------------------
    def _check_inplace(self) -> None:
        if self._history is not None:
            raise RuntimeError("In-place updates are only allowed on leaf tensors")

    def add_(self, other: Any, alpha: float = 1.0) -> "Tensor":
        """
        ``self += alpha * other`` written into this leaf's storage.

        Records no history.
        """
        self._check_inplace()
        values = other.data.view_array() if isinstance(other, Tensor) else other
        self._data.write_array()[...] += alpha * np.asarray(values, dtype=np.float64)
        return self

    def fill_(self, value: float) -> "Tensor":
        self._check_inplace()
        self._data.write_array()[...] = float(value)
        return self

    def copy_from_numpy(self, array: Any) -> "Tensor":
        self._check_inplace()
        arr = np.asarray(array, dtype=np.float64)
        if arr.shape != self.shape:
            raise ShapeError(f"Cannot copy array of shape {arr.shape} into {self.shape}")
        self._data.write_array()[...] = arr
        return self

    # ------------------------------------------------------------------
    # Element access and export
    # ------------------------------------------------------------------
    def get(self, index: Sequence[int]) -> float:
        return self._data.get(index)

    def set(self, index: Sequence[int], value: float) -> None:
        self._check_inplace()
        self._data.set(index, value)

    def item(self) -> float:
        if self.size != 1:
            raise ShapeError(f"item() needs a single-element tensor, got shape {self.shape}")
        return float(self._data.view_array().reshape(-1)[0])

    def to_numpy(self) -> np.ndarray:
        """Return a copy of the contents; never aliases pooled storage."""
        return self._data.to_numpy()

    def tolist(self) -> List:
        return self.to_numpy().tolist()

    def detach(self) -> "Tensor":
        """Return a constant leaf sharing this tensor's storage."""
        return Tensor(self._data, requires_grad=False)

    # ------------------------------------------------------------------
    # Python operators
    # ------------------------------------------------------------------
    def __add__(self, other: TensorLike) -> "Tensor":
        return self.add(other)

    def __radd__(self, other: TensorLike) -> "Tensor":
        return Tensor._lift(other).add(self)

    def __sub__(self, other: TensorLike) -> "Tensor":
        return self.sub(other)

    def __rsub__(self, other: TensorLike) -> "Tensor":
        return Tensor._lift(other).sub(self)

    def __mul__(self, other: TensorLike) -> "Tensor":
        return self.mul(other)

    def __rmul__(self, other: TensorLike) -> "Tensor":
        return Tensor._lift(other).mul(self)

    def __truediv__(self, other: TensorLike) -> "Tensor":
        return self.div(other)

    def __rtruediv__(self, other: TensorLike) -> "Tensor":
        return Tensor._lift(other).div(self)

    def __neg__(self) -> "Tensor":
        return self.neg()

    def __lt__(self, other: TensorLike) -> "Tensor":
        return self.lt(other)

    def __gt__(self, other: TensorLike) -> "Tensor":
        return self.gt(other)

    def __matmul__(self, other: "Tensor") -> "Tensor":
        return self.matmul(other)

    def __len__(self) -> int:
        if self.dims == 0:
            raise TypeError("len() of a 0-d tensor")
        return self.shape[0]

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        label = f", name={self.name!r}" if self.name else ""
        body = np.array2string(self._data.view_array(), precision=4, separator=", ")
        return f"Tensor({body}, shape={self.shape}{label})"


def zeros(shape: Sequence[int], requires_grad: bool = True) -> Tensor:
    return Tensor.zeros(shape, requires_grad=requires_grad)


def ones(shape: Sequence[int], requires_grad: bool = True) -> Tensor:
    return Tensor.ones(shape, requires_grad=requires_grad)


def rand(
    shape: Sequence[int],
    requires_grad: bool = True,
    rng: Optional[np.random.Generator] = None,
) -> Tensor:
    return Tensor.rand(shape, requires_grad=requires_grad, rng=rng)


def tensor(values: Any, requires_grad: bool = True) -> Tensor:
    return Tensor.tensor(values, requires_grad=requires_grad)

