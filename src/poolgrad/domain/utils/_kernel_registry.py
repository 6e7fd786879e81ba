"""
Keyed kernel registration (a.k.a. "control-path" templating) via decorators.

This module provides a small mechanism for routing a single logical operation
(e.g., ``"matmul"``) to one of several registered implementations, keyed by a
hashable *kind* (e.g., naive vs. fast).

Core idea
---------
- A registry is created with `create_kernel_registry()`.
- Implementations are registered with a decorator keyed by
  ``(OperationName, KindVal)``.
- Callers resolve the implementation for a given key at runtime and call it.

Important notes
---------------
- Registered implementations are stored in a closure-local mapping owned by
  `create_kernel_registry()`. Different registries do not share mappings.
- Registration is performed once, at import time of the kernel modules.
  Resolution is a dictionary lookup; nothing is intercepted per call.
"""

from typing import Callable, Dict, Hashable, NamedTuple, Optional, Tuple, Type
from typing_extensions import ParamSpec, TypeVar
from collections import namedtuple

P = ParamSpec("P")
R = TypeVar("R")


class KernelRegistry(NamedTuple):
    """
    Handle returned by `create_kernel_registry`.

    Fields
    ------
    register : Callable
        ``register(operation, kind) -> decorator``.
    resolve : Callable
        ``resolve(operation, kind) -> implementation``.
    registered : Callable
        ``registered() -> tuple of (operation, kind) keys``.
    """

    register: Callable[[str, Hashable], Callable[[Callable], Callable]]
    resolve: Callable[[str, Hashable], Callable]
    registered: Callable[[], Tuple[Tuple[str, Hashable], ...]]


def create_kernel_registry(
    missing_error: Optional[Type[Exception]] = None,
) -> KernelRegistry:
    """
    Create a keyed kernel registry.

    Usage
    -----
        kernels = create_kernel_registry()

        @kernels.register("matmul", "naive")
        def matmul_naive(a, b): ...

        impl = kernels.resolve("matmul", "naive")

    Parameters
    ----------
    missing_error : Optional[Type[Exception]]
        Exception class raised by `resolve` when no implementation is
        registered for a key. Defaults to `NotImplementedError`.

    Returns
    -------
    KernelRegistry
        Named tuple of the `register`, `resolve` and `registered` callables.
    """

    KernelKey = namedtuple(
        "KernelKey",
        [
            "OperationName",
            "KindVal",
        ],
    )
    """
    Tuple-like key used to uniquely identify a kernel.

    Fields
    ------
    OperationName : str
        Logical operation name (e.g., "map", "matmul").
    KindVal : Hashable
        The kind value that selects this implementation.
    """

    kernels_map: Dict[KernelKey, Callable] = {}
    """Mapping from (operation, kind) keys to registered implementations."""

    def register(
        operation: str, kind: Hashable
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """
        Build a decorator that registers a kernel implementation.

        Parameters
        ----------
        operation : str
            Logical operation name.
        kind : Hashable
            Kind value selecting the decorated implementation.

        Returns
        -------
        Callable[[Callable[P, R]], Callable[P, R]]
            Decorator that stores the implementation and returns it unchanged.

        Raises
        ------
        TypeError
            If `kind` is not hashable.
        """
        try:
            hash(kind)
        except TypeError:
            raise TypeError(f"The argument for 'kind' must be hashable. Got {kind!r}")

        key = KernelKey(operation, kind)

        def decorator(impl: Callable[P, R]) -> Callable[P, R]:
            kernels_map[key] = impl
            return impl

        return decorator

    def resolve(operation: str, kind: Hashable) -> Callable:
        """
        Return the implementation registered for `(operation, kind)`.

        Raises
        ------
        NotImplementedError
            (or the configured `missing_error`) if nothing is registered.
        """
        if impl := kernels_map.get(KernelKey(operation, kind)):
            return impl
        error = missing_error or NotImplementedError
        raise error(f"Missing kernel (kind={kind!r}) for operation {operation!r}")

    def registered() -> Tuple[Tuple[str, Hashable], ...]:
        return tuple((k.OperationName, k.KindVal) for k in kernels_map)

    return KernelRegistry(register, resolve, registered)
