"""
Plain gradient descent.

    p <- p - lr * (g + weight_decay * p)

No momentum term is kept, so the optimizer is stateless between steps.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .._parameter import Parameter
from ._base import LeafOptimizer


class SGD(LeafOptimizer):
    """
    Gradient descent with a fixed learning rate.

    Parameters
    ----------
    params : Iterable[Parameter]
        Parameters to update.
    lr : float, optional
        Step size, must be positive. Defaults to 1e-3.
    weight_decay : float, optional
        Coupled L2 coefficient, must be non-negative. Defaults to 0.0.

    Raises
    ------
    ValueError
        On an out-of-range hyperparameter.
    TypeError
        If `params` holds anything but `Parameter` objects.
    """

    def __init__(
        self,
        params: Iterable[Parameter],
        *,
        lr: float = 1e-3,
        weight_decay: float = 0.0,
    ) -> None:
        self._init_params(params, lr, weight_decay)

    def _delta(self, p: Parameter, g: np.ndarray) -> np.ndarray:
        return -self.lr * g

    def __repr__(self) -> str:
        return f"SGD(lr={self.lr}, weight_decay={self.weight_decay})"
