"""
Pooled CPU storage for tensor buffers.

`StoragePool` hands out flat ``float64`` NumPy buffers and takes them back for
reuse. Buffers are kept on per-size free lists, so a training loop that
repeatedly allocates tensors of the same shapes settles into a steady state
with no fresh allocations.

Ownership
---------
The `TensorData` that acquired a buffer owns it. A `weakref.finalize` attached
to the owner returns the buffer when the owner is collected; see
`StoragePool.track`. Views hold a reference to their owner, so a buffer is
never recycled while any descriptor over it is reachable.

Sessions
--------
A pool can be used as a context manager. Inside the ``with`` block it is the
active pool (returned by `current_pool`), and on exit it is destroyed:

    with StoragePool(max_elements=1 << 20) as pool:
        ...

Outside any session, allocations come from a lazily created process-wide
default pool, which `destroy_pool` tears down.

The pool is single-threaded: it is not guarded for concurrent mutation.
"""

from __future__ import annotations

import logging
import warnings
import weakref
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from ...domain._errors import PoolExhaustedError
from .._config import get_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolStats:
    """
    Snapshot of pool counters.

    Attributes
    ----------
    allocated : int
        Buffers freshly allocated from NumPy.
    reused : int
        Acquisitions satisfied from a free list.
    released : int
        Buffers returned to the pool.
    outstanding : int
        Elements currently checked out.
    free_buffers : int
        Buffers currently waiting on free lists.
    destroyed : bool
        Whether `destroy` has been called.
    """

    allocated: int
    reused: int
    released: int
    outstanding: int
    free_buffers: int
    destroyed: bool


class StoragePool:
    """
    Size-bucketed pool of flat ``float64`` buffers.

    Parameters
    ----------
    max_elements : Optional[int]
        Maximum number of elements that may be checked out at once. None means
        unbounded. When omitted, the ``pool_max_elements`` config value is used.
    """

    def __init__(self, max_elements: Optional[int] = None) -> None:
        if max_elements is None:
            max_elements = get_config().pool_max_elements
        if max_elements is not None and int(max_elements) < 0:
            raise ValueError(f"max_elements must be >= 0, got {max_elements}")

        self._max_elements: Optional[int] = (
            None if max_elements is None else int(max_elements)
        )
        self._free: Dict[int, List[np.ndarray]] = defaultdict(list)
        self._outstanding = 0
        self._allocated = 0
        self._reused = 0
        self._released = 0
        self._destroyed = False

    @property
    def max_elements(self) -> Optional[int]:
        return self._max_elements

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def acquire(self, size: int) -> np.ndarray:
        """
        Check out a zero-filled buffer of exactly `size` elements.

        Parameters
        ----------
        size : int
            Number of elements.

        Returns
        -------
        np.ndarray
            A 1-D ``float64`` array of length `size`.

        Raises
        ------
        RuntimeError
            If the pool has been destroyed.
        ValueError
            If `size` is negative.
        PoolExhaustedError
            If the request would exceed `max_elements`, or NumPy cannot
            allocate the buffer.
        """
        if self._destroyed:
            raise RuntimeError("Cannot acquire storage from a destroyed pool")
        size = int(size)
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")

        if (
            self._max_elements is not None
            and self._outstanding + size > self._max_elements
        ):
            raise PoolExhaustedError(size, self._outstanding, self._max_elements)

        bucket = self._free.get(size)
        if bucket:
            storage = bucket.pop()
            storage.fill(0.0)
            self._reused += 1
        else:
            try:
                storage = np.zeros(size, dtype=np.float64)
            except MemoryError as e:
                raise PoolExhaustedError(size, self._outstanding) from e
            self._allocated += 1

        self._outstanding += size
        return storage

    def release(self, storage: np.ndarray) -> None:
        """
        Return a buffer to its free list.

        Releasing into a destroyed pool is a no-op; the buffer is simply
        dropped and reclaimed by the garbage collector.
        """
        if self._destroyed:
            return
        size = int(storage.size)
        self._outstanding = max(0, self._outstanding - size)
        self._released += 1
        self._free[size].append(storage)

    def track(self, owner: object, storage: np.ndarray) -> None:
        """
        Release `storage` back to this pool once `owner` is collected.
        """
        finalizer = weakref.finalize(owner, self.release, storage)
        finalizer.atexit = False

    def destroy(self) -> None:
        """
        Drop all pooled memory. Safe to call more than once.

        Emits a `RuntimeWarning` if buffers are still checked out; those
        buffers stay valid for their owners but are never recycled.
        """
        if self._destroyed:
            return
        if self._outstanding:
            warnings.warn(
                f"StoragePool destroyed with {self._outstanding} elements still "
                "checked out; they will not be recycled.",
                RuntimeWarning,
                stacklevel=2,
            )
        logger.debug(
            "destroying pool: allocated=%d reused=%d released=%d",
            self._allocated,
            self._reused,
            self._released,
        )
        self._free.clear()
        self._outstanding = 0
        self._destroyed = True

    def stats(self) -> PoolStats:
        return PoolStats(
            allocated=self._allocated,
            reused=self._reused,
            released=self._released,
            outstanding=self._outstanding,
            free_buffers=sum(len(b) for b in self._free.values()),
            destroyed=self._destroyed,
        )

    def __enter__(self) -> "StoragePool":
        if self._destroyed:
            raise RuntimeError("Cannot enter a destroyed pool")
        _session_stack.append(self)
        logger.debug("entered pool session (depth=%d)", len(_session_stack))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self in _session_stack:
            _session_stack.remove(self)
        self.destroy()

    def __repr__(self) -> str:
        s = self.stats()
        return (
            f"StoragePool(max_elements={self._max_elements}, "
            f"outstanding={s.outstanding}, free_buffers={s.free_buffers}, "
            f"destroyed={s.destroyed})"
        )


_session_stack: List[StoragePool] = []
_default_pool: Optional[StoragePool] = None


def current_pool() -> StoragePool:
    """
    Return the innermost active session pool, else the default pool.

    The default pool is created on first use, and again after `destroy_pool`.
    """
    global _default_pool
    if _session_stack:
        return _session_stack[-1]
    if _default_pool is None or _default_pool.destroyed:
        _default_pool = StoragePool()
        logger.debug("created default storage pool")
    return _default_pool


def destroy_pool() -> None:
    """
    Tear down the process-wide default pool.

    Idempotent: calling it again, or before any allocation, does nothing.
    """
    global _default_pool
    if _default_pool is None:
        return
    pool, _default_pool = _default_pool, None
    pool.destroy()
