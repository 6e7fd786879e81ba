"""
Engine configuration and environment overrides.

This module centralizes the tunable knobs of the engine:

- ``fast_threshold``: output size at which the dispatch layer switches from
  the naive kernels to the fast kernels (inclusive).
- ``block_size``: tile edge used by the blocked matrix-multiply kernel.
- ``disable_fast``: force every operation onto the naive kernels.
- ``pool_max_elements``: optional element budget for storage pools created
  without an explicit limit.

Resolution policy
-----------------
Defaults are overridden by environment variables when present:

- ``POOLGRAD_FAST_THRESHOLD``
- ``POOLGRAD_BLOCK_SIZE``
- ``POOLGRAD_DISABLE_FAST`` ("1", "true", "yes", "on" enable it)
- ``POOLGRAD_POOL_MAX_ELEMENTS``

The threshold is a performance knob only: kernels selected on either side of
it produce the same numbers.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Mapping, Optional

DEFAULT_FAST_THRESHOLD = 4096
DEFAULT_BLOCK_SIZE = 64

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine configuration.

    Attributes
    ----------
    fast_threshold : int
        Output element count at or above which fast kernels are selected.
    block_size : int
        Tile edge for the blocked matrix-multiply kernel.
    disable_fast : bool
        If True, the naive kernels are always selected.
    pool_max_elements : Optional[int]
        Default element budget for new storage pools (None = unbounded).
    """

    fast_threshold: int = DEFAULT_FAST_THRESHOLD
    block_size: int = DEFAULT_BLOCK_SIZE
    disable_fast: bool = False
    pool_max_elements: Optional[int] = None

    def __post_init__(self) -> None:
        if int(self.fast_threshold) < 1:
            raise ValueError(f"fast_threshold must be >= 1, got {self.fast_threshold}")
        if int(self.block_size) < 1:
            raise ValueError(f"block_size must be >= 1, got {self.block_size}")
        if self.pool_max_elements is not None and int(self.pool_max_elements) < 0:
            raise ValueError(
                f"pool_max_elements must be >= 0, got {self.pool_max_elements}"
            )


def _env_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_config_from_env(env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Build an `EngineConfig` from defaults and environment overrides.

    Parameters
    ----------
    env : Optional[Mapping[str, str]]
        Mapping to read variables from. Defaults to ``os.environ``.

    Returns
    -------
    EngineConfig
        The resolved configuration.

    Raises
    ------
    ValueError
        If a variable is present but cannot be parsed or is out of range.
    """
    env = os.environ if env is None else env

    threshold = _env_int(env, "POOLGRAD_FAST_THRESHOLD")
    block = _env_int(env, "POOLGRAD_BLOCK_SIZE")
    max_elems = _env_int(env, "POOLGRAD_POOL_MAX_ELEMENTS")
    disable = env.get("POOLGRAD_DISABLE_FAST", "").strip().lower() in _TRUTHY

    return EngineConfig(
        fast_threshold=DEFAULT_FAST_THRESHOLD if threshold is None else threshold,
        block_size=DEFAULT_BLOCK_SIZE if block is None else block,
        disable_fast=disable,
        pool_max_elements=max_elems,
    )


_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    """
    Return the active configuration, loading it from the environment once.
    """
    global _config
    if _config is None:
        _config = load_config_from_env()
    return _config


def set_config(config: EngineConfig) -> None:
    """
    Replace the active configuration.
    """
    global _config
    if not isinstance(config, EngineConfig):
        raise TypeError(f"set_config expects EngineConfig, got {type(config)!r}")
    _config = config


@contextmanager
def override_config(**changes) -> Iterator[EngineConfig]:
    """
    Temporarily replace fields of the active configuration.

    Example
    -------
        with override_config(fast_threshold=8):
            ...
    """
    previous = get_config()
    updated = replace(previous, **changes)
    set_config(updated)
    try:
        yield updated
    finally:
        set_config(previous)
