"""
Trainable parameter interface definitions.

This module defines the domain-level interface for trainable parameters used
by optimization algorithms. A parameter is a named handle around a *leaf*
autodiff value; optimizers read the value's gradient and write updates
directly into the leaf's storage.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable, Any

from ._value import IValue


@runtime_checkable
class IParameter(Protocol):
    """
    Domain-level interface for trainable parameters.

    Notes
    -----
    - The wrapped value must be a leaf (no history).
    - Optimizers rely on this interface to discover and update parameters.
    """

    @property
    def value(self) -> IValue:
        """
        Return the wrapped leaf value.
        """
        ...

    @property
    def grad(self) -> Optional[Any]:
        """
        Return the wrapped value's gradient, or None if not yet computed.
        """
        ...

    def update(self, value: IValue) -> None:
        """
        Replace the wrapped leaf value.
        """
        ...

    def zero_grad(self) -> None:
        """
        Clear the stored gradient of the wrapped value.
        """
        ...
