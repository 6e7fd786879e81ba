"""
Shape algebra and strided storage descriptors.

A tensor's numbers live in a flat ``float64`` storage. `TensorData` pairs a
storage with a shape and per-dimension strides; the position of a
multi-index in the storage is ``sum(index[i] * strides[i])``.

This module also provides the broadcasting helpers shared by every kernel:

- `shape_broadcast` computes the result shape of a binary operation,
- `broadcast_index` maps an index in the broadcast result back to an operand.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import ShapeError
from ._pool import StoragePool, current_pool

Shape = Tuple[int, ...]
Strides = Tuple[int, ...]
Index = Tuple[int, ...]
Storage = np.ndarray


def shape_product(shape: Sequence[int]) -> int:
    """Number of elements in `shape`. The empty shape holds one element."""
    product = 1
    for dim in shape:
        product *= int(dim)
    return product


def strides_from_shape(shape: Sequence[int]) -> Strides:
    """Row-major strides, in elements, for a contiguous `shape`."""
    result = [0] * len(shape)
    stride = 1
    for i in range(len(shape) - 1, -1, -1):
        result[i] = stride
        stride *= int(shape[i])
    return tuple(result)


def index_to_position(index: Sequence[int], strides: Sequence[int]) -> int:
    position = 0
    for i, s in zip(index, strides):
        position += i * s
    return position


def to_index(ordinal: int, shape: Sequence[int], out_index: List[int]) -> None:
    """
    Write the row-major multi-index of `ordinal` within `shape` into
    `out_index`.
    """
    remaining = ordinal
    for i in range(len(shape) - 1, -1, -1):
        dim = shape[i]
        out_index[i] = remaining % dim
        remaining //= dim


def shape_broadcast(a: Sequence[int], b: Sequence[int]) -> Shape:
    """
    Broadcast two shapes together.

    Trailing dimensions are aligned; a dimension of size 1 stretches to match
    the other operand.

    Raises
    ------
    ShapeError
        If two aligned dimensions differ and neither is 1.
    """
    n = max(len(a), len(b))
    pa = (1,) * (n - len(a)) + tuple(a)
    pb = (1,) * (n - len(b)) + tuple(b)

    out = []
    for da, db in zip(pa, pb):
        if da == db or db == 1:
            out.append(da)
        elif da == 1:
            out.append(db)
        else:
            raise ShapeError(f"Cannot broadcast shapes {tuple(a)} and {tuple(b)}")
    return tuple(out)


def broadcast_index(
    big_index: Sequence[int],
    big_shape: Sequence[int],
    shape: Sequence[int],
    out_index: List[int],
) -> None:
    """
    Map `big_index` in the broadcast shape onto an operand of `shape`.

    Leading dimensions absent from `shape` are dropped; dimensions of size 1
    map to index 0.
    """
    offset = len(big_shape) - len(shape)
    for i, dim in enumerate(shape):
        out_index[i] = 0 if dim == 1 else big_index[i + offset]


class TensorData:
    """
    Strided view of a flat storage.

    Parameters
    ----------
    storage : np.ndarray
        Flat 1-D ``float64`` buffer.
    shape : Sequence[int]
        Logical shape.
    strides : Optional[Sequence[int]]
        Element strides. Defaults to row-major strides of `shape`.
    base : Optional[TensorData]
        Descriptor that owns `storage`. Views keep their owner alive so the
        storage is never returned to the pool while a view exists.
    """

    __slots__ = ("storage", "shape", "strides", "size", "dims", "_base", "__weakref__")

    def __init__(
        self,
        storage: Storage,
        shape: Sequence[int],
        strides: Optional[Sequence[int]] = None,
        base: Optional["TensorData"] = None,
    ) -> None:
        self.storage = storage
        self.shape: Shape = tuple(int(d) for d in shape)
        self.strides: Strides = (
            strides_from_shape(self.shape)
            if strides is None
            else tuple(int(s) for s in strides)
        )
        self.size = shape_product(self.shape)
        self.dims = len(self.shape)
        self._base = base

        if len(self.strides) != self.dims:
            raise ShapeError(
                f"Strides length ({len(self.strides)}) must match shape length "
                f"({self.dims})"
            )
        if any(d < 0 for d in self.shape):
            raise ShapeError(f"Negative dimension in shape {self.shape}")

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------
    @classmethod
    def zeros(
        cls, shape: Sequence[int], pool: Optional[StoragePool] = None
    ) -> "TensorData":
        """
        Allocate a zero-filled contiguous descriptor from `pool`.

        The new descriptor owns the storage; it is released to the pool when
        the descriptor is collected.
        """
        pool = current_pool() if pool is None else pool
        shape = tuple(int(d) for d in shape)
        storage = pool.acquire(shape_product(shape))
        data = cls(storage, shape)
        pool.track(data, storage)
        return data

    @classmethod
    def from_numpy(
        cls, array, pool: Optional[StoragePool] = None
    ) -> "TensorData":
        """
        Copy an array-like into freshly pooled storage.
        """
        arr = np.asarray(array, dtype=np.float64)
        data = cls.zeros(arr.shape, pool=pool)
        data.storage[:] = arr.reshape(-1)
        return data

    @property
    def owner(self) -> "TensorData":
        return self if self._base is None else self._base

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def _check_index(self, index: Sequence[int]) -> Index:
        index = tuple(int(i) for i in index)
        if len(index) != self.dims:
            raise ShapeError(
                f"Index {index} has rank {len(index)}, expected {self.dims} "
                f"for shape {self.shape}"
            )
        for i, dim in zip(index, self.shape):
            if i < 0 or i >= dim:
                raise ShapeError(f"Index {index} out of range for shape {self.shape}")
        return index

    def index(self, index: Sequence[int]) -> int:
        """Storage position of a validated multi-index."""
        return index_to_position(self._check_index(index), self.strides)

    def get(self, index: Sequence[int]) -> float:
        return float(self.storage[self.index(index)])

    def set(self, index: Sequence[int], value: float) -> None:
        self.storage[self.index(index)] = value

    def indices(self) -> Iterator[Index]:
        """Iterate all multi-indices in row-major order."""
        out = [0] * self.dims
        for ordinal in range(self.size):
            to_index(ordinal, self.shape, out)
            yield tuple(out)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def is_contiguous(self) -> bool:
        # size-1 dimensions never move the position, so their stride is free
        expected = strides_from_shape(self.shape)
        return all(
            dim == 1 or s == e for dim, s, e in zip(self.shape, self.strides, expected)
        )

    def permute(self, *order: int) -> "TensorData":
        """
        Reorder dimensions without copying.

        Raises
        ------
        ShapeError
            If `order` is not a permutation of ``range(dims)``.
        """
        if len(order) != self.dims:
            raise ShapeError(
                f"Permutation length ({len(order)}) must match number of "
                f"dimensions ({self.dims})"
            )
        if sorted(order) != list(range(self.dims)):
            raise ShapeError(f"Invalid permutation {order} for {self.dims} dimensions")

        return TensorData(
            self.storage,
            tuple(self.shape[i] for i in order),
            tuple(self.strides[i] for i in order),
            base=self.owner,
        )

    def view(self, *shape: int) -> "TensorData":
        """
        Reinterpret contiguous storage under a new shape with the same size.
        """
        if not self.is_contiguous():
            raise ShapeError(f"view() requires contiguous data, got strides {self.strides}")
        if shape_product(shape) != self.size:
            raise ShapeError(f"Cannot view shape {self.shape} as {tuple(shape)}")
        return TensorData(self.storage, shape, base=self.owner)

    def view_array(self, shape: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Return a read-only NumPy view honouring these strides.

        Parameters
        ----------
        shape : Optional[Sequence[int]]
            If given, the view is broadcast to `shape` (stretched dimensions
            get stride 0).
        """
        itemsize = self.storage.itemsize
        arr = np.lib.stride_tricks.as_strided(
            self.storage,
            shape=self.shape,
            strides=tuple(s * itemsize for s in self.strides),
            writeable=False,
        )
        if shape is not None and tuple(shape) != self.shape:
            try:
                arr = np.broadcast_to(arr, tuple(shape))
            except ValueError as e:
                raise ShapeError(
                    f"Cannot broadcast shape {self.shape} to {tuple(shape)}"
                ) from e
        return arr

    def write_array(self) -> np.ndarray:
        """Return a writeable NumPy view honouring these strides."""
        itemsize = self.storage.itemsize
        return np.lib.stride_tricks.as_strided(
            self.storage,
            shape=self.shape,
            strides=tuple(s * itemsize for s in self.strides),
        )

    def to_numpy(self) -> np.ndarray:
        """Copy the logical contents into a new, unpooled array."""
        return np.array(self.view_array(), dtype=np.float64, copy=True)

    def __repr__(self) -> str:
        return f"TensorData(shape={self.shape}, strides={self.strides})"
