"""
Differentiable scalar primitives.

Each class implements one `OpKind` on raw Python floats. `forward` saves
exactly what `backward` reads; `backward` returns one gradient per input.
"""

from __future__ import annotations

from typing import Tuple

from ...domain._function import Function
from .._autograd_graph import Context, OpKind, register_function
from ..ops import _operators as operators


@register_function(OpKind.SCALAR_ADD)
class ScalarAdd(Function):
    @staticmethod
    def forward(ctx: Context, a: float, b: float) -> float:
        return operators.add(a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float, float]:
        return grad_out, grad_out


@register_function(OpKind.SCALAR_MUL)
class ScalarMul(Function):
    @staticmethod
    def forward(ctx: Context, a: float, b: float) -> float:
        ctx.save_for_backward(a, b)
        return operators.mul(a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float, float]:
        a, b = ctx.saved_values
        return operators.mul(grad_out, b), operators.mul(grad_out, a)


@register_function(OpKind.SCALAR_INV)
class ScalarInv(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        ctx.save_for_backward(a)
        return operators.inv(a)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (a,) = ctx.saved_values
        return (operators.inv_back(a, grad_out),)


@register_function(OpKind.SCALAR_NEG)
class ScalarNeg(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        return operators.neg(a)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        return (operators.neg(grad_out),)


@register_function(OpKind.SCALAR_LOG)
class ScalarLog(Function):
    """``ln(a + LOG_EPS)``; negative inputs raise `NumericDomainError`."""

    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        out = operators.log(a)
        ctx.save_for_backward(a)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (a,) = ctx.saved_values
        return (operators.log_back(a, grad_out),)


@register_function(OpKind.SCALAR_EXP)
class ScalarExp(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        out = operators.exp(a)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (out,) = ctx.saved_values
        return (operators.mul(grad_out, out),)


@register_function(OpKind.SCALAR_SIGMOID)
class ScalarSigmoid(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        out = operators.sigmoid(a)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (out,) = ctx.saved_values
        return (operators.sigmoid_back(out, grad_out),)


@register_function(OpKind.SCALAR_RELU)
class ScalarReLU(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        ctx.save_for_backward(a)
        return operators.relu(a)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (a,) = ctx.saved_values
        return (operators.relu_back(a, grad_out),)


@register_function(OpKind.SCALAR_LEAKY_RELU)
class ScalarLeakyReLU(Function):
    @staticmethod
    def forward(ctx: Context, a: float) -> float:
        ctx.save_for_backward(a)
        return operators.leaky_relu(a)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float]:
        (a,) = ctx.saved_values
        return (operators.leaky_relu_back(a, grad_out),)


@register_function(OpKind.SCALAR_LT)
class ScalarLT(Function):
    @staticmethod
    def forward(ctx: Context, a: float, b: float) -> float:
        return operators.lt(a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float, float]:
        return 0.0, 0.0


@register_function(OpKind.SCALAR_EQ)
class ScalarEQ(Function):
    @staticmethod
    def forward(ctx: Context, a: float, b: float) -> float:
        return operators.eq(a, b)

    @staticmethod
    def backward(ctx: Context, grad_out: float) -> Tuple[float, float]:
        return 0.0, 0.0
