"""
Elementwise operator definitions shared by every kernel path.

Each scalar operator below has an array counterpart registered in
`VECTORIZED`. Naive kernels apply the scalar form element by element; fast
kernels look up the array form and apply it to whole strided views. Keeping
both forms here, side by side, is what lets the two paths agree.

Arithmetic operators (`add`, `mul`, `neg`, comparisons) are IEEE-exact in
both forms, so the paths agree bit for bit. Transcendental operators (`exp`,
`log`, `sigmoid`) agree within floating-point tolerance.
"""

from __future__ import annotations

import math
from typing import Callable, Dict

import numpy as np

from ...domain._errors import NumericDomainError

LOG_EPS = 1e-6
"""Offset added to the argument of `log` (and its derivative)."""

EXP_MAX = 709.78
"""Largest `exp` argument accepted; ``exp(EXP_MAX)`` is still finite in float64."""

INV_MIN = float(np.finfo(np.float64).tiny)
"""Smallest magnitude `inv` accepts: the smallest normal float64."""

LEAKY_SLOPE = 0.01
CLOSE_TOL = 1e-2


def mul(x: float, y: float) -> float:
    return x * y


def identity(x: float) -> float:
    return x


def add(x: float, y: float) -> float:
    return x + y


def neg(x: float) -> float:
    return -x


def lt(x: float, y: float) -> float:
    return 1.0 if x < y else 0.0


def eq(x: float, y: float) -> float:
    return 1.0 if x == y else 0.0


def maximum(x: float, y: float) -> float:
    return x if x > y else y


def is_close(x: float, y: float) -> float:
    return 1.0 if abs(x - y) < CLOSE_TOL else 0.0


def sigmoid(x: float) -> float:
    """
    Numerically stable logistic function.

    Uses ``1 / (1 + e^-x)`` for non-negative inputs and ``e^x / (1 + e^x)``
    otherwise, so the exponential never overflows.
    """
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    ex = math.exp(x)
    return ex / (1.0 + ex)


def relu(x: float) -> float:
    return x if x > 0 else 0.0


def leaky_relu(x: float) -> float:
    return x if x > 0 else LEAKY_SLOPE * x


def log(x: float) -> float:
    """
    ``ln(x + LOG_EPS)``.

    Raises
    ------
    NumericDomainError
        If `x` is negative.
    """
    if x < 0:
        raise NumericDomainError("log", f"input must be non-negative, got {x}")
    return math.log(x + LOG_EPS)


def exp(x: float) -> float:
    """
    ``e ** x``.

    Raises
    ------
    NumericDomainError
        If `x` exceeds `EXP_MAX`, where the result would overflow.
    """
    if x > EXP_MAX:
        raise NumericDomainError("exp", f"input must be <= {EXP_MAX}, got {x}")
    return math.exp(x)


def inv(x: float) -> float:
    """
    ``1 / x``.

    Raises
    ------
    NumericDomainError
        If `x` is zero or smaller in magnitude than `INV_MIN`.
    """
    if x == 0:
        raise NumericDomainError("inv", "division by zero")
    if abs(x) < INV_MIN:
        raise NumericDomainError("inv", f"reciprocal of {x} overflows")
    return 1.0 / x


def log_back(x: float, d: float) -> float:
    return d / (x + LOG_EPS)


def inv_back(x: float, d: float) -> float:
    # divide twice; x * x underflows to zero for |x| < 1e-154
    return -(d / x) / x


def relu_back(x: float, d: float) -> float:
    return d if x > 0 else 0.0


def leaky_relu_back(x: float, d: float) -> float:
    return d if x > 0 else LEAKY_SLOPE * d


def sigmoid_back(s: float, d: float) -> float:
    """Derivative in terms of the forward output ``s = sigmoid(x)``."""
    return d * s * (1.0 - s)


# ---------------------------------------------------------------------------
# Array forms
# ---------------------------------------------------------------------------
def _sigmoid_array(x: np.ndarray) -> np.ndarray:
    out = np.empty(np.shape(x), dtype=np.float64)
    pos = x >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
    ex = np.exp(x[~pos])
    out[~pos] = ex / (1.0 + ex)
    return out


def _as_float(mask: np.ndarray) -> np.ndarray:
    return mask.astype(np.float64)


VECTORIZED: Dict[Callable, Callable] = {
    mul: np.multiply,
    identity: lambda x: np.array(x, dtype=np.float64),
    add: np.add,
    neg: np.negative,
    lt: lambda x, y: _as_float(np.less(x, y)),
    eq: lambda x, y: _as_float(np.equal(x, y)),
    maximum: np.maximum,
    is_close: lambda x, y: _as_float(np.abs(x - y) < CLOSE_TOL),
    sigmoid: _sigmoid_array,
    relu: lambda x: np.where(x > 0, x, 0.0),
    leaky_relu: lambda x: np.where(x > 0, x, LEAKY_SLOPE * x),
    log: lambda x: np.log(x + LOG_EPS),
    exp: np.exp,
    inv: lambda x: 1.0 / x,
    log_back: lambda x, d: d / (x + LOG_EPS),
    inv_back: lambda x, d: -(d / x) / x,
    relu_back: lambda x, d: np.where(x > 0, d, 0.0),
    leaky_relu_back: lambda x, d: np.where(x > 0, d, LEAKY_SLOPE * d),
    sigmoid_back: lambda s, d: d * s * (1.0 - s),
}
"""Scalar operator -> array implementation used by the fast kernels."""


def vectorized(fn: Callable) -> Callable:
    """
    Return the array form of `fn`.

    Operators without a registered array form are wrapped with
    `numpy.vectorize`, which calls the scalar form per element and therefore
    matches the naive path exactly.
    """
    impl = VECTORIZED.get(fn)
    if impl is None:
        impl = np.vectorize(fn, otypes=[np.float64])
    return impl
