"""Symmetric coupling assignment on a fixed-degree adjacency."""

from __future__ import annotations

from typing import Any, Callable, Sequence, Tuple

import numpy as np

from flipcore.levels import check_levels, discretize, level_dtype

__all__ = [
    "assign_couplings",
    "random_levels",
    "random_normal",
    "discretize_couplings",
]


def assign_couplings(draw: Callable[[], Any], adjacency: np.ndarray, dtype: Any) -> np.ndarray:
    """Draw one value per edge and write it into both endpoints' rows.

    For each slot of x pointing to y > x, a value is drawn and the first
    unfilled slot of y pointing back to x is filled in the same step, so a
    double bond (L = 2 lattices) gets two independent values.
    """
    adjacency = np.asarray(adjacency)
    n, k = adjacency.shape
    couplings = np.zeros((n, k), dtype=dtype)
    filled = np.zeros((n, k), dtype=bool)
    for x in range(n):
        for s in range(k):
            y = int(adjacency[x, s])
            if y <= x:
                continue
            assert not filled[x, s], f"slot ({x}, {s}) filled twice"
            back = np.flatnonzero((adjacency[y] == x) & ~filled[y])
            if back.size == 0:
                raise ValueError(f"adjacency is not symmetric at edge ({x}, {y})")
            jxy = draw()
            couplings[x, s] = jxy
            couplings[y, back[0]] = jxy
            filled[x, s] = True
            filled[y, back[0]] = True
    if not filled.all():
        x, s = np.argwhere(~filled)[0]
        raise ValueError(f"unfilled coupling slot ({x}, {s})")
    return couplings


def random_levels(levels: Sequence, rng: np.random.Generator) -> Callable[[], Any]:
    lev = check_levels(levels)
    vals = np.asarray(lev, dtype=level_dtype(lev))

    def draw() -> Any:
        return vals[int(rng.integers(len(vals)))]

    return draw


def random_normal(rng: np.random.Generator) -> Callable[[], float]:
    return lambda: float(rng.standard_normal())


def discretize_couplings(cJ: np.ndarray, levels: Sequence) -> Tuple[np.ndarray, np.ndarray]:
    """Continuous couplings -> (discrete couplings in `levels`, residual couplings).

    Element-wise, so symmetry of `cJ` carries over to both parts.
    """
    return discretize(cJ, check_levels(levels))
