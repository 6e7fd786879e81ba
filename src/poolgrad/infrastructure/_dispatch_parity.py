"""
Dispatch parity scenario.

Trains the same linear regression at two batch sizes that straddle the
fast-kernel threshold and returns both final weight vectors. The kernel
choice only affects speed, so the two vectors agree within floating-point
tolerance; they differ only through the batch-size-dependent rounding of
the ``1 / batch`` scale.

Setup per run:
- ``x`` is ``(batch, features)`` filled with ones, ``y`` is ``(batch, 1)``
  zeros, and the weights start at ``w_i = i + 1``;
- ``loss = sum((sum(x * w, 1) - y) ** 2) / batch``;
- plain gradient descent writes ``w <- w - lr * grad`` in place.

Row sums (``sum(x * w, 1)``) produce ``batch`` outputs, so with the default
threshold the 4095-row run reduces on the naive kernels and the 4097-row run
on the fast kernels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from .tensor._pool import StoragePool
from .tensor._tensor import Tensor

logger = logging.getLogger(__name__)

FEATURES = 8
EPOCHS = 3
LEARNING_RATE = 0.01
BELOW_THRESHOLD = 4095
ABOVE_THRESHOLD = 4097


@dataclass(frozen=True)
class DispatchParityResult:
    weights_below: List[float]
    weights_above: List[float]


def train_linear_regression(
    batch_size: int, features: int, epochs: int, lr: float
) -> List[float]:
    """
    Run the reference regression and return the final weights.

    Raises
    ------
    ValueError
        If any size argument is not positive.
    """
    if batch_size <= 0 or features <= 0 or epochs < 0:
        raise ValueError(
            f"invalid sizes: batch_size={batch_size}, features={features}, "
            f"epochs={epochs}"
        )

    x = Tensor.ones((batch_size, features), requires_grad=False)
    y = Tensor.zeros((batch_size, 1), requires_grad=False)
    weights = Tensor.tensor([float(i + 1) for i in range(features)])
    inv_batch = 1.0 / batch_size

    for epoch in range(epochs):
        pred = x.mul(weights).sum(1)
        diff = pred.sub(y)
        loss = diff.mul(diff).sum(0).mul(inv_batch)

        loss.backward()
        grad = weights.grad_or_raise()
        weights.add_(grad, alpha=-lr)
        weights.zero_grad_()
        logger.debug("batch=%d epoch=%d loss=%.6g", batch_size, epoch, loss.item())

    return weights.tolist()


def run_dispatch_parity(
    features: int = FEATURES,
    epochs: int = EPOCHS,
    lr: float = LEARNING_RATE,
    below: int = BELOW_THRESHOLD,
    above: int = ABOVE_THRESHOLD,
) -> DispatchParityResult:
    """
    Train at `below` and `above` rows inside one pool session.

    The session pool is destroyed on exit, whether or not training succeeds.
    """
    with StoragePool():
        weights_below = train_linear_regression(below, features, epochs, lr)
        weights_above = train_linear_regression(above, features, epochs, lr)
    return DispatchParityResult(weights_below, weights_above)
