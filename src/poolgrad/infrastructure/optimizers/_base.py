"""
Shared machinery for gradient-descent optimizers.

`LeafOptimizer` owns the managed parameter list and the NumPy boundary: the
gradient of each parameter is read as an array, the subclass turns it into an
update, and the update is added back into the leaf value in place. Writing
through the leaf keeps updates out of the autograd graph. Scalar parameters
are treated as 0-d arrays.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np

from .._parameter import Parameter
from ..scalar._scalar import Scalar


def read_value(p: Parameter) -> np.ndarray:
    v = p.value
    if isinstance(v, Scalar):
        return np.asarray(v.data, dtype=np.float64)
    return v.to_numpy()


def read_grad(p: Parameter) -> Optional[np.ndarray]:
    g = p.grad
    if g is None:
        return None
    if isinstance(p.value, Scalar):
        return np.asarray(g, dtype=np.float64)
    return g.to_numpy()


def apply_delta(p: Parameter, delta: np.ndarray) -> None:
    """``p <- p + delta``, in place."""
    v = p.value
    if isinstance(v, Scalar):
        v.data = v.data + float(delta)
    else:
        v.add_(delta)


class LeafOptimizer:
    """
    Base class for optimizers that update `Parameter` leaves in place.

    Subclasses implement `_delta(p, g)` and return the array to add to the
    parameter, or None to leave it untouched. Parameters without a gradient
    are skipped before `_delta` is called.
    """

    params: List[Parameter]
    lr: float
    weight_decay: float

    def _init_params(
        self, params: Iterable[Parameter], lr: float, weight_decay: float
    ) -> None:
        self.params = list(params)
        self.lr = float(lr)
        self.weight_decay = float(weight_decay)

        if self.lr <= 0.0:
            raise ValueError(f"lr must be > 0, got {self.lr}")
        if self.weight_decay < 0.0:
            raise ValueError(f"weight_decay must be >= 0, got {self.weight_decay}")
        for p in self.params:
            if not isinstance(p, Parameter):
                raise TypeError(
                    f"{type(self).__name__} manages Parameter objects only, "
                    f"got {type(p).__name__}"
                )

    def _decayed_grad(self, p: Parameter, g: np.ndarray) -> np.ndarray:
        # coupled L2: the penalty is folded into the gradient
        if self.weight_decay != 0.0:
            return g + self.weight_decay * read_value(p)
        return g

    def _delta(self, p: Parameter, g: np.ndarray) -> Optional[np.ndarray]:
        raise NotImplementedError

    def zero_grad(self) -> None:
        for p in self.params:
            p.zero_grad()

    def step(self) -> None:
        """Update every managed parameter that has a gradient."""
        for p in self.params:
            g = read_grad(p)
            if g is None:
                continue
            delta = self._delta(p, self._decayed_grad(p, g))
            if delta is not None:
                apply_delta(p, delta)
