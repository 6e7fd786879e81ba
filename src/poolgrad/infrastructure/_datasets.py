"""
Synthetic 2-D binary classification datasets.

Each generator returns a `Graph` of ``N`` points in the unit square with 0/1
labels. Points are drawn from a `numpy.random.Generator`; pass a seed or a
generator for reproducible data.

    graph = DATASETS["Xor"](100, rng=0)
    X, y = graph.to_tensors()
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Tuple, Union

import numpy as np

from .tensor._tensor import Tensor

Point = Tuple[float, float]
Seed = Union[None, int, np.random.Generator]


@dataclass(frozen=True)
class Graph:
    """
    Labelled point set.

    Attributes
    ----------
    N : int
        Number of points.
    X : List[Point]
        Point coordinates.
    y : List[int]
        Labels, 0 or 1.
    """

    N: int
    X: List[Point]
    y: List[int]

    def to_tensors(self) -> Tuple[Tensor, Tensor]:
        """
        Return constant tensors ``X`` of shape ``(N, 2)`` and ``y`` of shape
        ``(N,)``.
        """
        points = np.asarray(self.X, dtype=np.float64).reshape(self.N, 2)
        X = Tensor.tensor(points, requires_grad=False)
        y = Tensor.tensor(np.asarray(self.y, dtype=np.float64), requires_grad=False)
        return X, y


def make_pts(N: int, rng: Seed = None) -> List[Point]:
    """Generate `N` uniform points in ``[0, 1) x [0, 1)``."""
    if N < 0:
        raise ValueError(f"N must be >= 0, got {N}")
    gen = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
    return [(float(a), float(b)) for a, b in gen.random((N, 2))]


def _labelled(N: int, rng: Seed, rule: Callable[[float, float], bool]) -> Graph:
    X = make_pts(N, rng)
    return Graph(N, X, [1 if rule(x1, x2) else 0 for x1, x2 in X])


def simple(N: int, rng: Seed = None) -> Graph:
    return _labelled(N, rng, lambda x1, x2: x1 < 0.5)


def diag(N: int, rng: Seed = None) -> Graph:
    return _labelled(N, rng, lambda x1, x2: x1 + x2 < 0.5)


def split(N: int, rng: Seed = None) -> Graph:
    return _labelled(N, rng, lambda x1, x2: x1 < 0.2 or x1 > 0.8)


def xor(N: int, rng: Seed = None) -> Graph:
    return _labelled(
        N, rng, lambda x1, x2: (x1 < 0.5 and x2 > 0.5) or (x1 > 0.5 and x2 < 0.5)
    )


def circle(N: int, rng: Seed = None) -> Graph:
    return _labelled(
        N, rng, lambda x1, x2: (x1 - 0.5) ** 2 + (x2 - 0.5) ** 2 > 0.1
    )


def spiral(N: int, rng: Seed = None) -> Graph:
    """
    Two interleaved spirals, half labelled 0 and half labelled 1.

    Deterministic; `rng` is accepted for a uniform signature. An odd `N`
    yields ``N - 1`` points.
    """
    half = N // 2

    def fx(t: float) -> float:
        return t * math.cos(t) / 20.0

    def fy(t: float) -> float:
        return t * math.sin(t) / 20.0

    X1 = []
    X2 = []
    for i in range(half):
        t = 10.0 * (i / half)
        X1.append((fx(t) + 0.5, fy(t) + 0.5))
        X2.append((fy(-t) + 0.5, fx(-t) + 0.5))

    return Graph(2 * half, X1 + X2, [0] * half + [1] * half)


DATASETS: Mapping[str, Callable[..., Graph]] = MappingProxyType(
    {
        "Simple": simple,
        "Diag": diag,
        "Split": split,
        "Xor": xor,
        "Circle": circle,
        "Spiral": spiral,
    }
)
"""Read-only registry of dataset generators by display name."""
