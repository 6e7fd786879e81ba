"""
Shared kernel registry for CPU tensor kernels.

Naive and fast kernel modules register themselves here under the logical
operation name and a `KernelKind`:

    @kernel_registry.register("map", KernelKind.NAIVE)
    def map_naive(fn, out, a): ...

The dispatch layer resolves ``(operation, kind)`` at call time.
"""

from enum import Enum

from ...domain.utils._kernel_registry import create_kernel_registry


class KernelKind(Enum):
    """Closed set of kernel implementations."""

    NAIVE = "naive"
    FAST = "fast"


KERNEL_OPERATIONS = ("map", "zip", "reduce", "matmul")

kernel_registry = create_kernel_registry()
