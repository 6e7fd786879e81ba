"""
Autograd function interface definitions.

This module defines the abstract base class for differentiable operations
used in the automatic differentiation system. Concrete subclasses of
`Function` implement both the forward computation and its corresponding
backward gradient computation.

Functions operate on *raw* payloads (Python floats for scalars, tensor data
descriptors for tensors), never on autodiff values. Lifting literals, building
the context, and recording history is the job of the value types; a
`Function` only knows the math.
"""

from abc import ABC, abstractmethod
from typing import Any, Tuple


class Function(ABC):
    """
    Abstract base class for differentiable operations.

    A `Function` represents a single node kind in the computation graph and
    encapsulates both:
    - the forward computation
    - the backward (gradient) computation

    Subclasses must implement both `forward` and `backward` as static methods.
    Any intermediate values required for gradient computation should be saved
    on the provided `ctx` object during the forward pass, and nothing else.

    Notes
    -----
    - Methods are declared as `@staticmethod` to avoid implicit state on the
      function object itself.
    - The `ctx` argument is a per-invocation context, allowing safe reuse
      of `Function` classes across multiple computation graphs.
    """

    @staticmethod
    @abstractmethod
    def forward(ctx, *inputs: Any) -> Any:
        """
        Perform the forward computation.

        Parameters
        ----------
        ctx : Context
            A write-once context object used to store intermediate values
            required for gradient computation.
        *inputs : Any
            Raw input payloads of the operation.

        Returns
        -------
        Any
            The raw output payload.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(ctx, grad_out: Any) -> Tuple[Any, ...]:
        """
        Compute gradients with respect to the inputs.

        Parameters
        ----------
        ctx : Context
            The context object populated during the forward pass.
        grad_out : Any
            Gradient of the loss with respect to the output.

        Returns
        -------
        tuple
            Exactly one gradient per input passed to `forward`, in order.
        """
        ...
