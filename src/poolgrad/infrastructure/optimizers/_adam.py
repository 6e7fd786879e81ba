"""
Adam with bias-corrected moment estimates.

For gradient ``g`` at step ``t`` (counted per parameter):

    m <- beta1 * m + (1 - beta1) * g
    v <- beta2 * v + (1 - beta2) * g * g
    p <- p - lr * (m / (1 - beta1 ** t)) / (sqrt(v / (1 - beta2 ** t)) + eps)

Moments live in plain NumPy arrays outside the storage pool and are created
on a parameter's first update. Weight decay is the coupled L2 form, folded
into ``g`` before the moments are updated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

import numpy as np

from .._parameter import Parameter
from ._base import LeafOptimizer


@dataclass
class _Moments:
    m: np.ndarray
    v: np.ndarray
    t: int = 0


class Adam(LeafOptimizer):
    """
    Adam optimizer.

    Parameters
    ----------
    params : Iterable[Parameter]
        Parameters to update.
    lr : float, optional
        Step size, must be positive. Defaults to 1e-3.
    betas : Tuple[float, float], optional
        Moment decay rates, each in ``[0, 1)``.
    eps : float, optional
        Added to the denominator, must be positive.
    weight_decay : float, optional
        Coupled L2 coefficient, must be non-negative.
    """

    def __init__(
        self,
        params: Iterable[Parameter],
        *,
        lr: float = 1e-3,
        betas: Tuple[float, float] = (0.9, 0.999),
        eps: float = 1e-8,
        weight_decay: float = 0.0,
    ) -> None:
        self._init_params(params, lr, weight_decay)
        b1, b2 = float(betas[0]), float(betas[1])
        for label, beta in (("beta1", b1), ("beta2", b2)):
            if not 0.0 <= beta < 1.0:
                raise ValueError(f"{label} must be in [0, 1), got {beta}")
        if eps <= 0.0:
            raise ValueError(f"eps must be > 0, got {eps}")
        self.betas = (b1, b2)
        self.eps = float(eps)
        self._state: Dict[int, _Moments] = {}

    def _delta(self, p: Parameter, g: np.ndarray) -> np.ndarray:
        b1, b2 = self.betas
        st = self._state.get(id(p))
        if st is None:
            st = self._state[id(p)] = _Moments(np.zeros_like(g), np.zeros_like(g))

        st.t += 1
        st.m = b1 * st.m + (1.0 - b1) * g
        st.v = b2 * st.v + (1.0 - b2) * (g * g)

        m_hat = st.m / (1.0 - b1**st.t)
        v_hat = st.v / (1.0 - b2**st.t)
        return -self.lr * m_hat / (np.sqrt(v_hat) + self.eps)

    def __repr__(self) -> str:
        return (
            f"Adam(lr={self.lr}, betas={self.betas}, eps={self.eps}, "
            f"weight_decay={self.weight_decay})"
        )
