"""
Concrete trainable parameter implementation.

`Parameter` is a named handle around a leaf `Scalar` or `Tensor`. Modules
register parameters explicitly, and optimizers iterate them, read the leaf's
gradient, and write updates into the leaf in place.

Design notes
------------
- The wrapped value must be a leaf. Non-leaf values carry history and are
  rejected with `TypeError`.
- `update` swaps in a new leaf; `zero_grad` clears the current leaf's
  gradient.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from ..domain._parameter import IParameter
from .scalar._scalar import Scalar
from .tensor._tensor import Tensor

LeafValue = Union[Scalar, Tensor]


def _check_leaf(value: Any) -> LeafValue:
    if not isinstance(value, (Scalar, Tensor)):
        raise TypeError(
            f"Parameter expects a Scalar or Tensor, got {type(value).__name__}"
        )
    if not value.is_leaf():
        raise TypeError("Parameter values must be leaves (no history)")
    return value


class Parameter(IParameter):
    """
    Trainable leaf value wrapper.

    Parameters
    ----------
    value : Scalar | Tensor
        Leaf value to optimize. Its ``requires_grad`` is switched on.
    name : Optional[str]
        Optional label, also applied to the value.
    """

    def __init__(self, value: LeafValue, name: Optional[str] = None) -> None:
        self._value = _check_leaf(value)
        self._value.requires_grad = True
        self.name = name
        if name is not None:
            self._value.name = name

    @property
    def value(self) -> LeafValue:
        return self._value

    @property
    def grad(self) -> Optional[Any]:
        """
        Return the wrapped value's gradient.

        Returns
        -------
        Optional[float | Tensor]
            The gradient if present, otherwise None.
        """
        return self._value.grad

    def update(self, value: LeafValue) -> None:
        """
        Replace the wrapped leaf value.

        Raises
        ------
        TypeError
            If `value` is not a leaf `Scalar` or `Tensor`.
        """
        self._value = _check_leaf(value)
        self._value.requires_grad = True
        if self.name is not None:
            self._value.name = self.name

    def zero_grad(self) -> None:
        """
        Clear any accumulated gradient.

        Notes
        -----
        Training loops typically call this before each backward pass to
        prevent accumulation across steps.
        """
        self._value.zero_grad_()

    def __repr__(self) -> str:
        return f"Parameter({self._value!r})"
