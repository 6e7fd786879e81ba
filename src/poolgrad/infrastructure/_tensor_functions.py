"""
Differentiable tensor primitives.

Each `Function` here implements one tensor `OpKind` on raw `TensorData`
operands and routes all numeric work through the dispatch layer
(`ops._dispatch`), which picks the naive or fast kernel by size.

Broadcasting
------------
Binary operations broadcast their operands. Their backward rules sum the
incoming gradient over every stretched dimension so each returned gradient
has exactly its input's shape (see `unbroadcast`).

Domain checks
-------------
`Log` and `Inv` validate their input before dispatch, so both kernel
families see the same inputs and fail the same way.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from ..domain._errors import NumericDomainError
from ..domain._function import Function
from ._autograd_graph import Context, OpKind, register_function
from .ops import _operators as operators
from .ops._dispatch import matrix_multiply, tensor_map, tensor_reduce, tensor_zip
from .tensor._tensor_data import TensorData

Grad = TensorData


def contiguous(data: TensorData) -> TensorData:
    return data if data.is_contiguous() else tensor_map(operators.identity, data)


def unbroadcast(grad: TensorData, shape: Sequence[int]) -> TensorData:
    """
    Sum `grad` over the dimensions that broadcasting stretched to reach
    ``grad.shape`` from `shape`.
    """
    shape = tuple(shape)
    if grad.shape == shape:
        return grad

    extra = grad.dims - len(shape)
    out = grad
    for dim in range(grad.dims):
        target = 1 if dim < extra else shape[dim - extra]
        if out.shape[dim] != target:
            out = tensor_reduce(operators.add, out, dim, 0.0)
    return contiguous(out).view(*shape)


@register_function(OpKind.NEG)
class Neg(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        return tensor_map(operators.neg, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        return (tensor_map(operators.neg, grad_out),)


@register_function(OpKind.INV)
class Inv(Function):
    """
    Elementwise reciprocal.

    Inputs that are zero or below `INV_MIN` in magnitude raise
    `NumericDomainError` before any kernel runs.
    """

    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        arr = a.view_array()
        if np.any(arr == 0.0):
            raise NumericDomainError("inv", "division by zero")
        if np.any(np.abs(arr) < operators.INV_MIN):
            raise NumericDomainError(
                "inv", f"reciprocal overflows for |x| < {operators.INV_MIN}"
            )
        ctx.save_for_backward(a)
        return tensor_map(operators.inv, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (a,) = ctx.saved_values
        return (tensor_zip(operators.inv_back, a, grad_out),)


@register_function(OpKind.SIGMOID)
class Sigmoid(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        out = tensor_map(operators.sigmoid, a)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (out,) = ctx.saved_values
        return (tensor_zip(operators.sigmoid_back, out, grad_out),)


@register_function(OpKind.RELU)
class ReLU(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        ctx.save_for_backward(a)
        return tensor_map(operators.relu, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (a,) = ctx.saved_values
        return (tensor_zip(operators.relu_back, a, grad_out),)


@register_function(OpKind.LEAKY_RELU)
class LeakyReLU(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        ctx.save_for_backward(a)
        return tensor_map(operators.leaky_relu, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (a,) = ctx.saved_values
        return (tensor_zip(operators.leaky_relu_back, a, grad_out),)


@register_function(OpKind.LOG)
class Log(Function):
    """``ln(a + LOG_EPS)``. Negative inputs raise `NumericDomainError`."""

    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        arr = a.view_array()
        if np.any(arr < 0.0):
            raise NumericDomainError(
                "log", f"input must be non-negative, got min {float(arr.min())}"
            )
        ctx.save_for_backward(a)
        return tensor_map(operators.log, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (a,) = ctx.saved_values
        return (tensor_zip(operators.log_back, a, grad_out),)


@register_function(OpKind.EXP)
class Exp(Function):
    """``e ** a``. Inputs above `EXP_MAX` raise `NumericDomainError`."""

    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        arr = a.view_array()
        if np.any(arr > operators.EXP_MAX):
            raise NumericDomainError(
                "exp",
                f"input must be <= {operators.EXP_MAX}, got max {float(arr.max())}",
            )
        out = tensor_map(operators.exp, a)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        (out,) = ctx.saved_values
        return (tensor_zip(operators.mul, grad_out, out),)


@register_function(OpKind.ADD)
class Add(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.saved_meta["shapes"] = (a.shape, b.shape)
        return tensor_zip(operators.add, a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad, Grad]:
        a_shape, b_shape = ctx.saved_meta["shapes"]
        return unbroadcast(grad_out, a_shape), unbroadcast(grad_out, b_shape)


@register_function(OpKind.MUL)
class Mul(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.save_for_backward(a, b)
        return tensor_zip(operators.mul, a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad, Grad]:
        a, b = ctx.saved_values
        return (
            unbroadcast(tensor_zip(operators.mul, grad_out, b), a.shape),
            unbroadcast(tensor_zip(operators.mul, grad_out, a), b.shape),
        )


class _Comparison(Function):
    """Shared zero-gradient backward for predicates."""

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad, Grad]:
        a_shape, b_shape = ctx.saved_meta["shapes"]
        return TensorData.zeros(a_shape), TensorData.zeros(b_shape)


@register_function(OpKind.LT)
class LT(_Comparison):
    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.saved_meta["shapes"] = (a.shape, b.shape)
        return tensor_zip(operators.lt, a, b)


@register_function(OpKind.EQ)
class EQ(_Comparison):
    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.saved_meta["shapes"] = (a.shape, b.shape)
        return tensor_zip(operators.eq, a, b)


@register_function(OpKind.IS_CLOSE)
class IsClose(_Comparison):
    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.saved_meta["shapes"] = (a.shape, b.shape)
        return tensor_zip(operators.is_close, a, b)


@register_function(OpKind.SUM)
class Sum(Function):
    """Sum along one dimension, keeping it with size 1."""

    @staticmethod
    def forward(ctx: Context, a: TensorData, dim: int) -> TensorData:
        ctx.saved_meta["shape"] = a.shape
        return tensor_reduce(operators.add, a, dim, 0.0)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        return (tensor_map(operators.identity, grad_out, ctx.saved_meta["shape"]),)


@register_function(OpKind.PERMUTE)
class Permute(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData, order: Sequence[int]) -> TensorData:
        out = a.permute(*order)
        inverse = [0] * len(order)
        for i, axis in enumerate(order):
            inverse[axis] = i
        ctx.saved_meta["inverse"] = tuple(inverse)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        return (grad_out.permute(*ctx.saved_meta["inverse"]),)


@register_function(OpKind.VIEW)
class View(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData, shape: Sequence[int]) -> TensorData:
        ctx.saved_meta["shape"] = a.shape
        return a.view(*shape)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        return (contiguous(grad_out).view(*ctx.saved_meta["shape"]),)


@register_function(OpKind.CONTIGUOUS)
class Contiguous(Function):
    @staticmethod
    def forward(ctx: Context, a: TensorData) -> TensorData:
        return tensor_map(operators.identity, a)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad]:
        return (grad_out,)


def _transpose_last(data: TensorData) -> TensorData:
    if data.dims == 2:
        return data.permute(1, 0)
    return data.permute(0, 2, 1)


@register_function(OpKind.MATMUL)
class MatMul(Function):
    """
    Matrix product of 2-D or batched 3-D operands.

    Backward:
        dA = dOut @ B^T
        dB = A^T @ dOut
    each summed over a broadcast batch dimension when needed.
    """

    @staticmethod
    def forward(ctx: Context, a: TensorData, b: TensorData) -> TensorData:
        ctx.save_for_backward(a, b)
        return matrix_multiply(a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: Grad) -> Tuple[Grad, Grad]:
        a, b = ctx.saved_values
        grad_a = matrix_multiply(grad_out, _transpose_last(b))
        grad_b = matrix_multiply(_transpose_last(a), grad_out)
        return unbroadcast(grad_a, a.shape), unbroadcast(grad_b, b.shape)
