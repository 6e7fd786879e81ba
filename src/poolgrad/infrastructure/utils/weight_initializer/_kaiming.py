"""
Kaiming (He) weight initializers.

Implemented variants
--------------------
- ``kaiming``:
    Kaiming normal initialization, ``std = sqrt(2 / fan_in)``.
- ``kaiming_leaky_relu``:
    Kaiming normal adjusted for the engine's LeakyReLU slope,
    ``std = sqrt(2 / ((1 + a^2) * fan_in))``.

Notes
-----
- Fan-in is computed from the weight shape via ``_calculate_fan_in``.
- All initializers mutate the provided leaf tensor in-place and return it.
"""

import math
from typing import Optional

import numpy as np

from ....domain.utils._weight_initialization import _calculate_fan_in
from ...ops._operators import LEAKY_SLOPE
from ...tensor._tensor import Tensor
from ._base import WeightInitializer, _generator


@WeightInitializer.register_initializer("kaiming")
def kaiming(tensor: Tensor, rng: Optional[np.random.Generator] = None) -> Tensor:
    """
    Apply standard Kaiming (He) normal initialization.

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
    fan_in = max(1, _calculate_fan_in(tuple(tensor.shape)))
    std = math.sqrt(2.0 / float(fan_in))
    tensor.copy_from_numpy(_generator(rng).standard_normal(tensor.shape) * std)
    return tensor


@WeightInitializer.register_initializer("kaiming_leaky_relu")
def kaiming_leaky_relu(
    tensor: Tensor, rng: Optional[np.random.Generator] = None
) -> Tensor:
    fan_in = max(1, _calculate_fan_in(tuple(tensor.shape)))
    std = math.sqrt(2.0 / ((1.0 + LEAKY_SLOPE * LEAKY_SLOPE) * fan_in))
    tensor.copy_from_numpy(_generator(rng).standard_normal(tensor.shape) * std)
    return tensor
