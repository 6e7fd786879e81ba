"""
Module (layer) interface definitions.

This module defines the domain-level interface for neural network modules
(layers) using structural subtyping via `typing.Protocol`.

Any object that implements the required methods is considered a valid module,
independent of inheritance, enabling flexible composition and clean separation
between domain contracts and infrastructure implementations.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from ._parameter import IParameter


@runtime_checkable
class IModule(Protocol):
    """
    Domain-level module (layer) interface.

    A module represents a composable unit of computation (e.g., layers or
    containers of other modules). This interface defines the minimal contract
    required for an object to participate in forward execution and parameter
    collection.
    """

    def forward(self, x: Any) -> Any:
        """
        Execute the forward computation of the module.
        """
        ...

    def parameters(self) -> Iterable[IParameter]:
        """
        Return the trainable parameters of the module (recursive).
        """
        ...

    def parameter_map(self) -> Mapping[str, IParameter]:
        """
        Return an immutable mapping from dotted name to parameter.
        """
        ...
