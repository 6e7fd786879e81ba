"""
Naive CPU reference kernels.

These kernels walk every output element by ordinal, convert it to a
multi-index, and use the broadcasting helpers to locate the matching operand
elements. They favour clarity over speed and are the numerical reference for
the fast kernels in `fast_ops_cpu`.

Kernel signatures
-----------------
- ``map(fn, out, a)``: ``out[i] = fn(a[bcast(i)])``
- ``zip(fn, out, a, b)``: ``out[i] = fn(a[bcast(i)], b[bcast(i)])``
- ``reduce(fn, out, a, dim, start)``: ``out[i] = fn(...fn(fn(start, a0), a1)...)``
  along `dim`, where ``out.shape[dim] == 1``
- ``matmul(out, a, b)``: 3-D batched product, batch dim broadcast

All kernels write into a pre-allocated `out` and return None.
"""

from __future__ import annotations

from typing import Callable

from ..tensor._tensor_data import (
    TensorData,
    broadcast_index,
    index_to_position,
    to_index,
)
from ._kernel_builder import KernelKind, kernel_registry


@kernel_registry.register("map", KernelKind.NAIVE)
def map_naive(fn: Callable[[float], float], out: TensorData, a: TensorData) -> None:
    out_index = [0] * out.dims
    a_index = [0] * a.dims
    for ordinal in range(out.size):
        to_index(ordinal, out.shape, out_index)
        broadcast_index(out_index, out.shape, a.shape, a_index)
        x = float(a.storage[index_to_position(a_index, a.strides)])
        out.storage[index_to_position(out_index, out.strides)] = fn(x)


@kernel_registry.register("zip", KernelKind.NAIVE)
def zip_naive(
    fn: Callable[[float, float], float],
    out: TensorData,
    a: TensorData,
    b: TensorData,
) -> None:
    out_index = [0] * out.dims
    a_index = [0] * a.dims
    b_index = [0] * b.dims
    for ordinal in range(out.size):
        to_index(ordinal, out.shape, out_index)
        broadcast_index(out_index, out.shape, a.shape, a_index)
        broadcast_index(out_index, out.shape, b.shape, b_index)
        x = float(a.storage[index_to_position(a_index, a.strides)])
        y = float(b.storage[index_to_position(b_index, b.strides)])
        out.storage[index_to_position(out_index, out.strides)] = fn(x, y)


@kernel_registry.register("reduce", KernelKind.NAIVE)
def reduce_naive(
    fn: Callable[[float, float], float],
    out: TensorData,
    a: TensorData,
    dim: int,
    start: float,
) -> None:
    out_index = [0] * out.dims
    reduce_size = a.shape[dim]
    for ordinal in range(out.size):
        to_index(ordinal, out.shape, out_index)
        a_index = list(out_index)
        acc = start
        for j in range(reduce_size):
            a_index[dim] = j
            acc = fn(acc, float(a.storage[index_to_position(a_index, a.strides)]))
        out.storage[index_to_position(out_index, out.strides)] = acc


@kernel_registry.register("matmul", KernelKind.NAIVE)
def matmul_naive(out: TensorData, a: TensorData, b: TensorData) -> None:
    """
    Triple-loop batched matrix multiply.

    ``a`` is ``(Ba, M, K)``, ``b`` is ``(Bb, K, N)`` and ``out`` is
    ``(B, M, N)``; a batch size of 1 broadcasts.
    """
    batch, rows, cols = out.shape
    inner = a.shape[2]
    a_s, b_s, o_s = a.strides, b.strides, out.strides
    a_store, b_store, o_store = a.storage, b.storage, out.storage

    for n in range(batch):
        a_batch = (0 if a.shape[0] == 1 else n) * a_s[0]
        b_batch = (0 if b.shape[0] == 1 else n) * b_s[0]
        for i in range(rows):
            for j in range(cols):
                acc = 0.0
                for k in range(inner):
                    x = float(a_store[a_batch + i * a_s[1] + k * a_s[2]])
                    y = float(b_store[b_batch + k * b_s[1] + j * b_s[2]])
                    acc += x * y
                o_store[n * o_s[0] + i * o_s[1] + j * o_s[2]] = acc
