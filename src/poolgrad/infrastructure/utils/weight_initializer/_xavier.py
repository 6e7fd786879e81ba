"""
Xavier/Glorot weight initializers.

Implemented variants
--------------------
- ``xavier``:
    Xavier normal initialization using ``std = sqrt(2 / (fan_in + fan_out))``.
- ``xavier_uniform``:
    Xavier uniform initialization using
    ``U(-sqrt(6/(fan_in+fan_out)), +sqrt(6/(fan_in+fan_out)))``.
"""

import math
from typing import Optional

import numpy as np

from ....domain.utils._weight_initialization import _calculate_fan_in_and_fan_out
from ...tensor._tensor import Tensor
from ._base import WeightInitializer, _generator


@WeightInitializer.register_initializer("xavier")
def xavier(tensor: Tensor, rng: Optional[np.random.Generator] = None) -> Tensor:
    """
    Apply Xavier (Glorot) normal initialization.

    Parameters
    ----------
    tensor:
        The leaf tensor to initialize in-place.
    rng:
        Random generator. A fresh unseeded generator is used when omitted.

    Returns
    -------
    Tensor
        The initialized tensor (same object).
    """
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(tensor.shape))
    std = math.sqrt(2.0 / float(max(1, fan_in + fan_out)))
    tensor.copy_from_numpy(_generator(rng).standard_normal(tensor.shape) * std)
    return tensor


@WeightInitializer.register_initializer("xavier_uniform")
def xavier_uniform(
    tensor: Tensor, rng: Optional[np.random.Generator] = None
) -> Tensor:
    fan_in, fan_out = _calculate_fan_in_and_fan_out(tuple(tensor.shape))
    bound = math.sqrt(6.0 / float(max(1, fan_in + fan_out)))
    tensor.copy_from_numpy(_generator(rng).uniform(-bound, bound, tensor.shape))
    return tensor
