"""
Autodiff value interface definitions.

This module defines the domain-level interface shared by every value that
participates in the computation graph (scalars and tensors). The interface
is structural (`typing.Protocol`) so the backward engine, parameters and
optimizers can be typed against it without importing concrete classes.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class IValue(Protocol):
    """
    Autodiff-aware value interface.

    An `IValue` wraps a forward payload (`data`), an optional gradient
    accumulator (`grad`) and an optional record of how it was produced
    (`history`).

    Notes
    -----
    - Values without history are leaves. Only leaves with
      ``requires_grad`` set receive gradient accumulation.
    - ``history`` is assigned once, when an operation constructs the value.
    """

    @property
    def data(self) -> Any:
        """
        Return the forward-computed payload.
        """
        ...

    @property
    def grad(self) -> Optional[Any]:
        """
        Return the accumulated gradient, or None if none was received.
        """
        ...

    @property
    def history(self) -> Optional[Any]:
        """
        Return the producing history edge, or None for leaves.
        """
        ...

    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether a leaf accumulates gradients during backward.
        """
        ...

    @property
    def parents(self) -> Sequence["IValue"]:
        """
        Return the input values recorded in this value's history.
        """
        ...

    def is_leaf(self) -> bool:
        """
        Return True if this value has no recorded history.
        """
        ...

    def is_constant(self) -> bool:
        """
        Return True for leaves that do not require gradients.
        """
        ...

    def accumulate_grad_(self, grad: Any) -> None:
        """
        Add `grad` into this value's gradient accumulator.
        """
        ...

    def backward(self, grad_output: Optional[Any] = None) -> None:
        """
        Backpropagate from this value through the computation graph.
        """
        ...

    def zero_grad_(self) -> None:
        """
        Reset the gradient accumulator to empty.
        """
        ...
