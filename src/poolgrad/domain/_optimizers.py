"""
Domain-level optimizer contracts for poolgrad.

This module defines the `IOptimizer` protocol, which specifies the minimal
interface required for optimizer implementations (e.g., SGD, Adam).

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- Optimizers update trainable parameters based on their stored gradients.
  Gradient computation (the backward engine) is outside this protocol.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer interface contract.

    Required methods
    ----------------
    - `step()` applies one optimization update to managed parameters.
    - `zero_grad()` clears gradients for managed parameters.
    """

    def step(self) -> None:
        """
        Apply one optimization step.

        Implementations should skip parameters that do not currently have
        gradients (e.g., `grad is None`).
        """
        ...

    def zero_grad(self) -> None:
        """
        Clear gradients for all managed parameters.
        """
        ...

    @property
    def params(self) -> Iterable[object]:
        """
        Return the parameters managed by this optimizer.
        """
        ...
