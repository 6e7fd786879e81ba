from ._kernel_registry import KernelRegistry, create_kernel_registry

__all__ = [KernelRegistry.__name__, create_kernel_registry.__name__]
