"""
Constant weight initializers.

Provided initializers
---------------------
- ``zeros``: every element set to zero.
- ``ones``: every element set to one.

Typically used for biases and deterministic test setups. The `rng`
argument is accepted for a uniform call signature and ignored.
"""

from ...tensor._tensor import Tensor
from ._base import WeightInitializer


@WeightInitializer.register_initializer("zeros")
def zeros(tensor: Tensor, rng=None) -> Tensor:
    return tensor.fill_(0.0)


@WeightInitializer.register_initializer("ones")
def ones(tensor: Tensor, rng=None) -> Tensor:
    return tensor.fill_(1.0)
