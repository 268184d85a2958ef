"""Random K-regular graphs via the pairing (configuration) model.

Half-edges are matched at random; an attempt that produces a self-loop or a
multi-edge is thrown away and restarted. The expected number of attempts grows
like exp((K^2 - 1) / 4), so large K is impractical and the retry budget is a
hard limit.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from flipcore.levels import check_levels, level_dtype
from flipcore.pairwise import PairwiseGraph
from flipcore.residual import ResidualDecorator
from graphs.couplings import assign_couplings, discretize_couplings, random_levels, random_normal

__all__ = [
    "GraphGenerationError",
    "MAX_ATTEMPTS",
    "pairing_attempt",
    "gen_rrg",
    "GraphRRG",
    "GraphRRGNormal",
    "GraphRRGNormalDiscretized",
]

MAX_ATTEMPTS = 100_000


class GraphGenerationError(RuntimeError):
    """Raised when no valid graph was produced within the attempt budget."""


def pairing_attempt(n: int, k: int, rng: np.random.Generator) -> Optional[np.ndarray]:
    """One pass of the pairing model; None on self-loop or duplicate edge."""
    slots = list(range(n * k))
    adj = [set() for _ in range(n)]
    while slots:
        l = len(slots)
        j = int(rng.integers(l - 1))
        rv1 = slots.pop()
        slots[j], slots[-1] = slots[-1], slots[j]
        rv2 = slots.pop()
        v1 = rv1 % n
        v2 = rv2 % n
        if v1 == v2 or v2 in adj[v1]:
            return None
        adj[v1].add(v2)
        adj[v2].add(v1)
    return np.array([sorted(a) for a in adj], dtype=np.int64).reshape(n, k)


def gen_rrg(
    n: int,
    k: int,
    rng: Optional[np.random.Generator] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> np.ndarray:
    """Adjacency (N, K) of a simple K-regular graph, rows sorted.

    Raises:
        ValueError: non-positive N or K, or odd N*K.
        GraphGenerationError: budget of `max_attempts` exhausted.
    """
    if n <= 0:
        raise ValueError(f"N must be positive: {n}")
    if k <= 0:
        raise ValueError(f"K must be positive: {k}")
    if (n * k) % 2 != 0:
        raise ValueError(f"N * K must be even, given N={n}, K={k}")
    if max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive: {max_attempts}")
    rng = rng if rng is not None else np.random.default_rng()
    for _ in range(max_attempts):
        adjacency = pairing_attempt(n, k, rng)
        if adjacency is not None:
            return adjacency
    raise GraphGenerationError(
        f"pairing model failed after {max_attempts} attempts (N={n}, K={k})"
    )


def GraphRRG(
    n: int,
    k: int,
    levels: Sequence = (-1, 1),
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> PairwiseGraph:
    """Random regular graph with couplings drawn uniformly from `levels`. No fields."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    adjacency = gen_rrg(n, k, rng)
    couplings = assign_couplings(random_levels(lev, rng), adjacency, level_dtype(lev))
    return PairwiseGraph(adjacency, couplings, lev)


def GraphRRGNormal(
    n: int,
    k: int,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> PairwiseGraph:
    """Random regular graph with unit-variance Gaussian couplings."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    adjacency = gen_rrg(n, k, rng)
    couplings = assign_couplings(random_normal(rng), adjacency, np.float64)
    return PairwiseGraph(adjacency, couplings)


def GraphRRGNormalDiscretized(
    n: int,
    k: int,
    levels: Sequence,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> ResidualDecorator:
    """Gaussian couplings split into a `levels` part and a continuous residual."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    adjacency = gen_rrg(n, k, rng)
    cJ = assign_couplings(random_normal(rng), adjacency, np.float64)
    dJ, rJ = discretize_couplings(cJ, lev)
    return ResidualDecorator(PairwiseGraph(adjacency, dJ, lev), PairwiseGraph(adjacency, rJ))
