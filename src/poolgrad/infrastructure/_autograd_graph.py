"""
Computation-graph records: `Context`, `OpKind`, and `History`.

Every value produced by a differentiable operation carries a `History`:
which operation produced it (`OpKind`), the `Context` that operation filled
during forward, and the input values it consumed.

Operation kinds form a closed enum. Each kind is bound to exactly one
`Function` subclass by the `register_function` decorator; the binding is
checked when the class is registered, not when a graph is walked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Tuple, Type, TypeVar

from ..domain._function import Function


class Context:
    """
    Write-once bag of values saved by a forward pass for its backward pass.

    Attributes
    ----------
    saved_meta : dict[str, Any]
        Non-numeric facts needed by backward (shapes, axes, orders).
    """

    __slots__ = ("_saved", "_sealed", "saved_meta")

    def __init__(self) -> None:
        self._saved: Tuple[Any, ...] = ()
        self._sealed = False
        self.saved_meta: Dict[str, Any] = {}

    def save_for_backward(self, *values: Any) -> None:
        """
        Save the raw values the backward rule needs.

        Raises
        ------
        RuntimeError
            If values were already saved on this context.
        """
        if self._sealed:
            raise RuntimeError("save_for_backward() may only be called once per context")
        self._saved = tuple(values)
        self._sealed = True

    @property
    def saved_values(self) -> Tuple[Any, ...]:
        return self._saved


class OpKind(Enum):
    """Every differentiable primitive known to the engine."""

    # scalar
    SCALAR_ADD = "scalar_add"
    SCALAR_MUL = "scalar_mul"
    SCALAR_INV = "scalar_inv"
    SCALAR_NEG = "scalar_neg"
    SCALAR_LOG = "scalar_log"
    SCALAR_EXP = "scalar_exp"
    SCALAR_SIGMOID = "scalar_sigmoid"
    SCALAR_RELU = "scalar_relu"
    SCALAR_LEAKY_RELU = "scalar_leaky_relu"
    SCALAR_LT = "scalar_lt"
    SCALAR_EQ = "scalar_eq"

    # tensor
    NEG = "neg"
    INV = "inv"
    SIGMOID = "sigmoid"
    RELU = "relu"
    LEAKY_RELU = "leaky_relu"
    LOG = "log"
    EXP = "exp"
    ADD = "add"
    MUL = "mul"
    LT = "lt"
    EQ = "eq"
    IS_CLOSE = "is_close"
    SUM = "sum"
    PERMUTE = "permute"
    VIEW = "view"
    CONTIGUOUS = "contiguous"
    MATMUL = "matmul"


_FUNCTIONS: Dict[OpKind, Type[Function]] = {}

FUNCTIONS: Mapping[OpKind, Type[Function]] = MappingProxyType(_FUNCTIONS)
"""Read-only view of the kind -> Function binding."""

F = TypeVar("F", bound=Type[Function])


def register_function(kind: OpKind) -> Callable[[F], F]:
    """
    Bind a `Function` subclass to an operation kind.

    Raises
    ------
    TypeError
        If `kind` is not an `OpKind` or the decorated object is not a
        `Function` subclass.
    ValueError
        If `kind` is already bound.
    """
    if not isinstance(kind, OpKind):
        raise TypeError(f"register_function expects OpKind, got {kind!r}")

    def decorator(cls: F) -> F:
        if not (isinstance(cls, type) and issubclass(cls, Function)):
            raise TypeError(f"{cls!r} is not a Function subclass")
        if kind in _FUNCTIONS:
            raise ValueError(
                f"{kind} is already bound to {_FUNCTIONS[kind].__name__}"
            )
        _FUNCTIONS[kind] = cls
        return cls

    return decorator


def function_for(kind: OpKind) -> Type[Function]:
    try:
        return _FUNCTIONS[kind]
    except KeyError:
        raise NotImplementedError(f"No Function registered for {kind}") from None


@dataclass(frozen=True)
class History:
    """
    Record of how a value was produced.

    Attributes
    ----------
    kind : OpKind
        Producing operation.
    ctx : Context
        Context populated by the forward pass.
    inputs : tuple
        Input values (autodiff values, not raw numbers), in call order.
    """

    kind: OpKind
    ctx: Context = field(repr=False)
    inputs: Tuple[Any, ...] = ()

    @property
    def function(self) -> Type[Function]:
        return function_for(self.kind)

    def chain_rule(self, grad_out: Any) -> Tuple[Tuple[Any, Any], ...]:
        """
        Run the producing function's backward rule.

        Returns
        -------
        tuple of (input_value, gradient)
            One pair per input.
        """
        grads = self.function.backward(self.ctx, grad_out)
        if len(grads) != len(self.inputs):
            raise RuntimeError(
                f"{self.function.__name__}.backward returned {len(grads)} "
                f"gradients for {len(self.inputs)} inputs"
            )
        return tuple(zip(self.inputs, grads))
