"""
Name-keyed registry of weight initializers.

An initializer is a function ``(tensor, rng=None) -> tensor`` that overwrites
a leaf tensor's storage with fresh values and hands the same tensor back.
Functions join the registry through a class-level decorator; `Linear` and
user code look them up by name:

    @WeightInitializer.register_initializer("halves")
    def halves(tensor, rng=None):
        tensor.fill_(0.5)
        return tensor

    WeightInitializer("kaiming")(weight, rng=np.random.default_rng(0))

Lookup happens in ``__init__``, so a misspelled name fails when a layer is
constructed.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, Optional, Tuple, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import _WeightInitializer
from ...tensor._tensor import Tensor

InitFn = TypeVar("InitFn", bound=Callable[..., Tensor])


def _generator(rng: Optional[np.random.Generator]) -> np.random.Generator:
    # unseeded when the caller does not supply one
    return np.random.default_rng() if rng is None else rng


class WeightInitializer(_WeightInitializer):
    """Callable handle on one registered initializer."""

    INITIALIZERS: ClassVar[Dict[str, Callable[..., Tensor]]] = {}

    def __init__(self, initializer_name: str) -> None:
        fn = self.INITIALIZERS.get(initializer_name)
        if fn is None:
            known = ", ".join(self.available()) or "<none>"
            raise ValueError(
                f"No initializer named {initializer_name!r} (known: {known})"
            )
        self.name = initializer_name
        self._fn: Callable[..., Tensor] = fn

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[InitFn], InitFn]:
        """
        Return a decorator that files a function under `name`.

        Re-registering an existing name raises `ValueError` unless
        `overwrite` is set.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Initializer name must be a non-empty string")

        def decorator(fn: InitFn) -> InitFn:
            if name in cls.INITIALIZERS and not overwrite:
                raise ValueError(f"Initializer {name!r} is already registered")
            cls.INITIALIZERS[name] = fn
            return fn

        return decorator

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(self, tensor: Tensor, *args: Any, **kwargs: Any) -> Tensor:
        return self._fn(tensor, *args, **kwargs)

    def __repr__(self) -> str:
        return f"WeightInitializer({self.name!r})"
