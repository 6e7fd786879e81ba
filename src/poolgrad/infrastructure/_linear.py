"""
Linear (fully-connected) layer implementation.

This module provides a `Linear` module that performs an affine projection of
2-D, batch-major inputs:

    y = x @ W + b

Shape conventions
-----------------
- x : (batch, in_features)
- W : (in_features, out_features)
- b : (out_features,)  (omitted if bias=False)
- y : (batch, out_features)

Autograd integration
--------------------
`forward()` is composed of differentiable tensor operations (`matmul`, `add`),
so no hand-written backward rule is needed. The matrix multiply goes through
the size-based dispatch layer like every other tensor kernel.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..domain._errors import ShapeError
from ._module import Module
from ._parameter import Parameter
from .tensor._tensor import Tensor
from .utils.weight_initializer import WeightInitializer


class Linear(Module):
    """
    Fully-connected layer.

    Parameters
    ----------
    in_features : int
        Size of each input sample.
    out_features : int
        Size of each output sample.
    bias : bool, optional
        Whether to include a bias term. Defaults to True.
    initializer : str, optional
        Registered weight initializer name. Defaults to ``"kaiming"``.
    rng : Optional[np.random.Generator]
        Random generator for the weight initializer.
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        bias: bool = True,
        *,
        initializer: str = "kaiming",
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        super().__init__()
        if in_features <= 0 or out_features <= 0:
            raise ValueError(
                "in_features and out_features must be positive, got "
                f"{in_features} and {out_features}"
            )
        self.in_features = int(in_features)
        self.out_features = int(out_features)

        weight = Tensor.zeros((self.in_features, self.out_features))
        WeightInitializer(initializer)(weight, rng=rng)
        self.register_parameter("weight", Parameter(weight))

        self.bias: Optional[Parameter] = None
        if bias:
            self.register_parameter(
                "bias", Parameter(Tensor.zeros((self.out_features,)))
            )

    def forward(self, x: Tensor) -> Tensor:
        """
        Compute ``x @ W (+ b)``.

        Raises
        ------
        ShapeError
            If `x` is not ``(batch, in_features)``.
        """
        if x.dims != 2 or x.shape[1] != self.in_features:
            raise ShapeError(
                f"Linear expects input of shape (batch, {self.in_features}), "
                f"got {x.shape}"
            )
        out = x.matmul(self.weight.value)
        if self.bias is not None:
            out = out.add(self.bias.value)
        return out

    def __repr__(self) -> str:
        return (
            f"Linear(in_features={self.in_features}, "
            f"out_features={self.out_features}, bias={self.bias is not None})"
        )
