"""
poolgrad: a small reverse-mode autodiff engine over pooled CPU tensors.

    from poolgrad import tensor

    x = tensor([[1.0, 2.0], [3.0, 4.0]])
    loss = x.mul(x).sum()
    loss.backward()
    x.grad.to_numpy()  # 2 * x
"""

from .domain._errors import (
    PoolGradError,
    ShapeError,
    NumericDomainError,
    GradientMissingError,
    PoolExhaustedError,
)
from .infrastructure._config import (
    EngineConfig,
    get_config,
    set_config,
    override_config,
    load_config_from_env,
)
from .infrastructure.tensor._pool import (
    PoolStats,
    StoragePool,
    current_pool,
    destroy_pool,
)
from .infrastructure.tensor._tensor_data import TensorData, shape_broadcast
from .infrastructure.ops._kernel_builder import KernelKind
from .infrastructure.ops._dispatch import select_kernel
from .infrastructure._autograd_graph import Context, History, OpKind
from .infrastructure._autodiff import backpropagate, central_difference
from .infrastructure.scalar._scalar import Scalar, derivative_check
from .infrastructure.tensor._tensor import Tensor, zeros, ones, rand, tensor
from .infrastructure._parameter import Parameter
from .infrastructure._module import Module
from .infrastructure._linear import Linear
from .infrastructure.optimizers import SGD, Adam
from .infrastructure.utils.weight_initializer import WeightInitializer
from .infrastructure._datasets import DATASETS, Graph
from .infrastructure._dispatch_parity import (
    DispatchParityResult,
    run_dispatch_parity,
    train_linear_regression,
)

__version__ = "0.1.0"

__all__ = [
    "PoolGradError",
    "ShapeError",
    "NumericDomainError",
    "GradientMissingError",
    "PoolExhaustedError",
    "EngineConfig",
    "get_config",
    "set_config",
    "override_config",
    "load_config_from_env",
    "PoolStats",
    "StoragePool",
    "current_pool",
    "destroy_pool",
    "TensorData",
    "shape_broadcast",
    "KernelKind",
    "select_kernel",
    "Context",
    "History",
    "OpKind",
    "backpropagate",
    "central_difference",
    "Scalar",
    "derivative_check",
    "Tensor",
    "zeros",
    "ones",
    "rand",
    "tensor",
    "Parameter",
    "Module",
    "Linear",
    "SGD",
    "Adam",
    "WeightInitializer",
    "DATASETS",
    "Graph",
    "DispatchParityResult",
    "run_dispatch_parity",
    "train_linear_regression",
]
