# `Tensor` lives in `._tensor` and is imported from there directly; the kernel
# layer depends on this package, so only the storage primitives load here.
from ._pool import PoolStats, StoragePool, current_pool, destroy_pool
from ._tensor_data import (
    TensorData,
    broadcast_index,
    shape_broadcast,
    shape_product,
    strides_from_shape,
)

__all__ = [
    PoolStats.__name__,
    StoragePool.__name__,
    current_pool.__name__,
    destroy_pool.__name__,
    TensorData.__name__,
    broadcast_index.__name__,
    shape_broadcast.__name__,
    shape_product.__name__,
    strides_from_shape.__name__,
]
