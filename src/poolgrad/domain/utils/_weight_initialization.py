"""
Abstract interfaces and utilities for weight initialization.

This module defines the abstract base class for weight initializers along
with shared helpers for computing fan-in and fan-out from weight shapes.

The concrete registry and the initialization strategies live in the
infrastructure layer.

Shape convention
----------------
Dense weights are stored as ``(in_features, out_features)`` so a layer
computes ``x @ W``.
"""

from abc import ABC
from typing import Callable, Dict, Tuple


class _WeightInitializer(ABC):
    """
    Abstract base class for weight initializer dispatchers.

    Design notes
    ------------
    - Initializers are identified by string names.
    - Each initializer is a callable that mutates a tensor in-place and
      returns it.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    def __init__(self, initializer_name: str) -> None: ...

    @classmethod
    def register_initializer(cls, name: str, *, overwrite: bool = False) -> Callable:
        """
        Return a decorator that registers an initializer under `name`.
        """
        ...

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        """
        Return the names of all registered initializers.
        """
        ...

    def __call__(self, tensor, *args, **kwargs): ...


def _calculate_fan_in_and_fan_out(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """
    Compute fan-in and fan-out for a weight shape.

    Parameters
    ----------
    shape:
        Shape of the weight tensor.

    Returns
    -------
    tuple[int, int]
        ``(fan_in, fan_out)``.
    """
    if len(shape) == 0:
        return 1, 1
    if len(shape) == 1:
        # bias-like vector
        return int(shape[0]), int(shape[0])
    if len(shape) == 2:
        fan_in, fan_out = shape
        return int(fan_in), int(fan_out)

    # batched dense: (batch, in, out)
    return int(shape[-2]), int(shape[-1])


def _calculate_fan_in(shape: Tuple[int, ...]) -> int:
    return _calculate_fan_in_and_fan_out(shape)[0]
