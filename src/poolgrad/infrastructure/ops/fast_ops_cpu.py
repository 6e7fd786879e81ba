"""
Vectorized CPU kernels.

Fast kernels operate on whole NumPy views built from the operands' storage
and strides (`TensorData.view_array`), so broadcasting costs nothing: a
stretched dimension is a zero stride.

Numerical contract
------------------
The fast kernels must produce the same numbers as the naive ones in
`tensor_ops_cpu`. Two rules keep them aligned:

- elementwise work uses the array form of the same operator
  (`_operators.vectorized`);
- accumulations happen in the same order. Reductions fold the reduced axis
  one slice at a time starting from `start`, and the blocked matrix multiply
  accumulates each output tile over the inner dimension one ``k`` at a time
  starting from zero. NumPy's pairwise `sum` and BLAS ``matmul`` are avoided
  because they reorder the additions.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from .._config import get_config
from ..tensor._tensor_data import TensorData
from ._kernel_builder import KernelKind, kernel_registry
from ._operators import vectorized


@kernel_registry.register("map", KernelKind.FAST)
def map_fast(fn: Callable[[float], float], out: TensorData, a: TensorData) -> None:
    x = a.view_array(out.shape)
    out.write_array()[...] = vectorized(fn)(x)


@kernel_registry.register("zip", KernelKind.FAST)
def zip_fast(
    fn: Callable[[float, float], float],
    out: TensorData,
    a: TensorData,
    b: TensorData,
) -> None:
    x = a.view_array(out.shape)
    y = b.view_array(out.shape)
    out.write_array()[...] = vectorized(fn)(x, y)


@kernel_registry.register("reduce", KernelKind.FAST)
def reduce_fast(
    fn: Callable[[float, float], float],
    out: TensorData,
    a: TensorData,
    dim: int,
    start: float,
) -> None:
    impl = vectorized(fn)
    x = a.view_array()
    acc = np.full(out.shape, start, dtype=np.float64)
    lead = (slice(None),) * dim
    for j in range(a.shape[dim]):
        acc = impl(acc, x[lead + (slice(j, j + 1),)])
    out.write_array()[...] = acc


@kernel_registry.register("matmul", KernelKind.FAST)
def matmul_fast(out: TensorData, a: TensorData, b: TensorData) -> None:
    """
    Blocked batched matrix multiply.

    The output is tiled into ``block_size x block_size`` blocks. Each tile is
    accumulated over the inner dimension with rank-1 updates, vectorized
    across the batch and the tile.
    """
    block = get_config().block_size
    _, rows, cols = out.shape
    inner = a.shape[2]
    x = a.view_array()
    y = b.view_array()
    result = out.write_array()

    for i0 in range(0, rows, block):
        i1 = min(i0 + block, rows)
        for j0 in range(0, cols, block):
            j1 = min(j0 + block, cols)
            tile = np.zeros((out.shape[0], i1 - i0, j1 - j0), dtype=np.float64)
            for k in range(inner):
                tile += x[:, i0:i1, k : k + 1] * y[:, k : k + 1, j0:j1]
            result[:, i0:i1, j0:j1] = tile
