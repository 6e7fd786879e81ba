"""
Size-based kernel dispatch.

Every tensor kernel call goes through this module. It allocates the output
from the active storage pool, picks a kernel kind with `select_kernel`, and
runs the registered implementation.

Boundary
--------
The fast kernels are selected iff the work size is **at least**
``fast_threshold`` (default 4096): ``size == threshold`` runs fast,
``size == threshold - 1`` runs naive. The work size is the number of output
elements, or ``M * N`` output entries for a matrix multiply. Setting
``disable_fast`` in the engine config pins every call to the naive kernels.

Which side of the boundary a call lands on only changes its speed; the two
kernel families produce the same numbers.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ...domain._errors import ShapeError
from .._config import get_config
from ..tensor._tensor_data import TensorData, shape_broadcast
from ._kernel_builder import KernelKind, kernel_registry

# Populate the registry with both kernel families.
from . import fast_ops_cpu as _fast_ops_cpu  # noqa: F401
from . import tensor_ops_cpu as _tensor_ops_cpu  # noqa: F401

logger = logging.getLogger(__name__)


def select_kernel(size: int) -> KernelKind:
    """
    Choose the kernel family for a call producing `size` outputs.
    """
    config = get_config()
    if config.disable_fast or size < config.fast_threshold:
        return KernelKind.NAIVE
    return KernelKind.FAST


def _resolve(operation: str, size: int, kind: Optional[KernelKind]) -> Callable:
    if kind is None:
        kind = select_kernel(size)
    logger.debug("dispatch %s size=%d -> %s", operation, size, kind.value)
    return kernel_registry.resolve(operation, kind)


def tensor_map(
    fn: Callable[[float], float],
    a: TensorData,
    out_shape: Optional[Sequence[int]] = None,
    kind: Optional[KernelKind] = None,
) -> TensorData:
    """
    Apply a unary operator elementwise.

    Parameters
    ----------
    fn : Callable[[float], float]
        Scalar operator from `_operators`.
    a : TensorData
        Operand.
    out_shape : Optional[Sequence[int]]
        Output shape. `a` must broadcast to it. Defaults to ``a.shape``.
    kind : Optional[KernelKind]
        Force a kernel family instead of selecting by size.
    """
    shape = a.shape if out_shape is None else tuple(out_shape)
    if shape_broadcast(a.shape, shape) != shape:
        raise ShapeError(f"Cannot broadcast shape {a.shape} to {shape}")
    out = TensorData.zeros(shape)
    _resolve("map", out.size, kind)(fn, out, a)
    return out


def tensor_zip(
    fn: Callable[[float, float], float],
    a: TensorData,
    b: TensorData,
    kind: Optional[KernelKind] = None,
) -> TensorData:
    """
    Apply a binary operator elementwise over the broadcast of `a` and `b`.

    Raises
    ------
    ShapeError
        If the shapes cannot be broadcast together.
    """
    out = TensorData.zeros(shape_broadcast(a.shape, b.shape))
    _resolve("zip", out.size, kind)(fn, out, a, b)
    return out


def tensor_reduce(
    fn: Callable[[float, float], float],
    a: TensorData,
    dim: int,
    start: float = 0.0,
    kind: Optional[KernelKind] = None,
) -> TensorData:
    """
    Fold `fn` along `dim`. The reduced dimension is kept with size 1.
    """
    if not 0 <= dim < a.dims:
        raise ShapeError(f"Reduction dim {dim} out of range for shape {a.shape}")
    shape = list(a.shape)
    shape[dim] = 1
    out = TensorData.zeros(shape)
    _resolve("reduce", out.size, kind)(fn, out, a, dim, float(start))
    return out


def matrix_multiply(
    a: TensorData,
    b: TensorData,
    kind: Optional[KernelKind] = None,
) -> TensorData:
    """
    Matrix product of 2-D or batched 3-D operands.

    2-D operands are treated as a batch of one; when both are 2-D the result
    is 2-D. A batch dimension of 1 broadcasts against the other operand.

    Raises
    ------
    ShapeError
        On unsupported ranks, mismatched inner dimensions, or incompatible
        batch dimensions.
    """
    if a.dims not in (2, 3) or b.dims not in (2, 3):
        raise ShapeError(
            f"matmul expects 2-D or 3-D operands, got {a.shape} and {b.shape}"
        )
    both_2d = a.dims == 2 and b.dims == 2
    a3 = a if a.dims == 3 else _promote(a)
    b3 = b if b.dims == 3 else _promote(b)

    if a3.shape[2] != b3.shape[1]:
        raise ShapeError(
            f"matmul inner dimensions differ: {a.shape} @ {b.shape}"
        )
    (batch,) = shape_broadcast(a3.shape[:1], b3.shape[:1])
    rows, cols = a3.shape[1], b3.shape[2]

    out = TensorData.zeros((batch, rows, cols))
    _resolve("matmul", rows * cols, kind)(out, a3, b3)
    return out.view(rows, cols) if both_2d else out


def _promote(data: TensorData) -> TensorData:
    return TensorData(
        data.storage, (1,) + data.shape, (0,) + data.strides, base=data.owner
    )
