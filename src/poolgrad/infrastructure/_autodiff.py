"""
Reverse-mode backward engine.

`backpropagate` walks the graph below a root value in reverse topological
order, so every value has received the contributions of all its consumers
before its own backward rule runs. Contributions arriving at the same value
along different paths are summed.

The engine is shared by scalars and tensors. Raw gradients are Python floats
for scalars and `TensorData` for tensors.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from ..domain._errors import ShapeError
from ..domain._value import IValue
from .ops import _operators as operators
from .ops._dispatch import tensor_zip
from .tensor._tensor_data import TensorData

logger = logging.getLogger(__name__)


def central_difference(
    f: Callable[..., float], *vals: float, arg: int = 0, epsilon: float = 1e-6
) -> float:
    """
    Centered finite-difference derivative of `f` with respect to ``vals[arg]``.
    """
    plus = list(vals)
    minus = list(vals)
    plus[arg] = plus[arg] + epsilon
    minus[arg] = minus[arg] - epsilon
    return (f(*plus) - f(*minus)) / (2.0 * epsilon)


def topological_sort(root: IValue) -> List[IValue]:
    """
    Return the values reachable from `root`, root first.

    Each value appears after every value that consumed it. Constant leaves
    (literals lifted by an operation) are omitted.
    """
    visited = set()
    order: List[IValue] = []
    stack = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if id(node) in visited:
            continue
        visited.add(id(node))
        stack.append((node, True))
        for parent in node.parents:
            if id(parent) not in visited and not parent.is_constant():
                stack.append((parent, False))

    order.reverse()
    return order


def _combine(existing: Any, incoming: Any) -> Any:
    if isinstance(existing, TensorData):
        return tensor_zip(operators.add, existing, incoming)
    return existing + incoming


def _check_grad_shape(value: IValue, grad: Any) -> None:
    if isinstance(grad, TensorData) and grad.shape != value.data.shape:
        raise ShapeError(
            f"Gradient shape {grad.shape} does not match value shape "
            f"{value.data.shape}"
        )


def backpropagate(root: IValue, d_out: Any) -> None:
    """
    Propagate `d_out` from `root` to every reachable leaf.

    Parameters
    ----------
    root : IValue
        Value to differentiate.
    d_out : Any
        Gradient of the final quantity with respect to `root` (raw payload).

    Notes
    -----
    Only leaves with ``requires_grad`` keep their gradient. Gradients of
    intermediate values live in a local map and are dropped once consumed.
    """
    order = topological_sort(root)
    logger.debug("backpropagate over %d values", len(order))

    pending: Dict[int, Any] = {id(root): d_out}
    for node in order:
        grad = pending.pop(id(node), None)
        if grad is None:
            continue
        if node.is_leaf():
            if node.requires_grad:
                node.accumulate_grad_(grad)
            continue

        for parent, parent_grad in node.history.chain_rule(grad):
            if parent_grad is None or parent.is_constant():
                continue
            _check_grad_shape(parent, parent_grad)
            key = id(parent)
            if key in pending:
                pending[key] = _combine(pending[key], parent_grad)
            else:
                pending[key] = parent_grad
