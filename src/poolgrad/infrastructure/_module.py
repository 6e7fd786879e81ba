"""
Infrastructure module base class.

This module provides a concrete `Module` implementation that satisfies the
domain-level `IModule` protocol:

- explicit parameter and submodule registration,
- recursive traversal (`parameters`, `named_parameters`, `children`,
  `modules`),
- an immutable name -> parameter mapping for optimizers (`parameter_map`),
- `__call__` forwarding to `forward`.

Registration rules
------------------
Parameters and submodules are registered with `register_parameter` and
`register_module`, and only while the module is being constructed. The
`_ModuleMeta` metaclass freezes an instance once its outermost ``__init__``
returns; registering afterwards raises `RuntimeError`. Types are checked once,
at registration. Assigning a `Parameter` or `Module` as a plain attribute
raises `TypeError` so nothing is silently left unregistered.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from ..domain._module import IModule
from ._parameter import Parameter


class _ModuleMeta(type(IModule)):
    """Freeze module registration after construction."""

    def __call__(cls, *args, **kwargs):
        instance = super().__call__(*args, **kwargs)
        object.__setattr__(instance, "_frozen", True)
        return instance


class Module(IModule, metaclass=_ModuleMeta):
    """
    Base class for layers and containers.

    Subclasses create `Parameter` instances and child modules in
    ``__init__``, register them, and implement `forward`.

    Attributes
    ----------
    _parameters : Dict[str, Parameter]
        Parameters registered directly on this module.
    _modules : Dict[str, Module]
        Child modules registered on this module.
    """

    def __init__(self) -> None:
        object.__setattr__(self, "_parameters", {})
        object.__setattr__(self, "_modules", {})
        object.__setattr__(self, "_training", True)
        object.__setattr__(self, "_frozen", False)
        object.__setattr__(self, "_parameter_map", None)

    def __setattr__(self, name: str, value: Any) -> None:
        if isinstance(value, (Parameter, Module)):
            raise TypeError(
                f"Assign {type(value).__name__} {name!r} with "
                "register_parameter() / register_module()"
            )
        object.__setattr__(self, name, value)

    def _check_registration(self, name: str) -> None:
        if getattr(self, "_frozen", False):
            raise RuntimeError(
                f"{type(self).__name__} is frozen; register {name!r} in __init__"
            )
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"Invalid registration name {name!r}")
        if name in self._parameters or name in self._modules:
            raise ValueError(f"{name!r} is already registered")

    def register_parameter(self, name: str, param: Parameter) -> Parameter:
        """
        Register a parameter with this module.

        Parameters
        ----------
        name : str
            Attribute name (e.g., "weight", "bias").
        param : Parameter
            Parameter to register. Also exposed as ``self.<name>``.

        Raises
        ------
        TypeError
            If `param` is not a `Parameter`.
        RuntimeError
            If the module has finished construction.
        """
        self._check_registration(name)
        if not isinstance(param, Parameter):
            raise TypeError(
                f"register_parameter expects Parameter, got {type(param).__name__}"
            )
        if param.name is None:
            param.name = name
        self._parameters[name] = param
        object.__setattr__(self, name, param)
        return param

    def register_module(self, name: str, module: "Module") -> "Module":
        """
        Register a child module with this module.

        Raises
        ------
        TypeError
            If `module` is not a `Module`.
        RuntimeError
            If the module has finished construction.
        """
        self._check_registration(name)
        if not isinstance(module, Module):
            raise TypeError(
                f"register_module expects Module, got {type(module).__name__}"
            )
        self._modules[name] = module
        object.__setattr__(self, name, module)
        return module

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def children(self) -> Iterator["Module"]:
        yield from self._modules.values()

    def modules(self) -> Iterator["Module"]:
        """Yield this module and every descendant, depth first."""
        yield self
        for child in self._modules.values():
            yield from child.modules()

    def named_parameters(self, prefix: str = "") -> Iterator[Tuple[str, Parameter]]:
        """
        Return an iterator over (dotted_name, parameter) pairs (recursive).
        """
        base = prefix + "." if prefix else ""
        for name, p in self._parameters.items():
            yield (f"{base}{name}", p)
        for child_name, child in self._modules.items():
            yield from child.named_parameters(f"{base}{child_name}")

    def parameters(self) -> Iterator[Parameter]:
        for _, p in self.named_parameters():
            yield p

    def parameter_map(self) -> Mapping[str, Parameter]:
        """
        Return a read-only mapping from dotted name to parameter.

        Built once, after construction has finished.
        """
        if not self._frozen:
            return MappingProxyType(dict(self.named_parameters()))
        if self._parameter_map is None:
            object.__setattr__(
                self, "_parameter_map", MappingProxyType(dict(self.named_parameters()))
            )
        return self._parameter_map

    def zero_grad(self) -> None:
        for p in self.parameters():
            p.zero_grad()

    # ------------------------------------------------------------------
    # Mode
    # ------------------------------------------------------------------
    @property
    def training(self) -> bool:
        return self._training

    def train(self, mode: bool = True) -> "Module":
        for m in self.modules():
            object.__setattr__(m, "_training", bool(mode))
        return self

    def eval(self) -> "Module":
        return self.train(False)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def forward(self, *args, **kwargs):
        """
        Execute the forward computation of the module.

        Subclasses must implement this.
        """
        raise NotImplementedError

    def __call__(self, *args, **kwargs):
        return self.forward(*args, **kwargs)

    def __repr__(self) -> str:
        lines = [f"{type(self).__name__}("]
        for name, child in self._modules.items():
            child_repr = repr(child).replace("\n", "\n  ")
            lines.append(f"  ({name}): {child_repr}")
        lines.append(")")
        return "\n".join(lines) if self._modules else f"{type(self).__name__}()"
