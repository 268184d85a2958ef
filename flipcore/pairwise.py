"""Pairwise coupling model on a fixed-degree adjacency.

E(σ) = -Σ_<xy> J_xy σ_x σ_y over the edges of a random regular graph or a
periodic lattice. The adjacency is an (N, K) array; edge (x, y) appears in
both rows with the same coupling. On an L = 2 lattice a row may list the same
neighbour twice (two distinct bonds).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

from .deltas import pairwise_deltas
from .levels import check_levels, level_dtype, make_discr
from .local_fields import LocalFieldCache, flip_pairwise, seed_pairwise

__all__ = ["PairwiseGraph"]


def _distinct(row: np.ndarray) -> List[int]:
    seen: List[int] = []
    for y in row:
        y = int(y)
        if y not in seen:
            seen.append(y)
    return seen


@dataclass
class PairwiseGraph:
    """Discrete (levels given) or continuous (levels=None) pairwise model.

    Args:
        adjacency: (N, K) integer array of neighbour indices.
        couplings: (N, K) array, couplings[x, k] belongs to edge (x, adjacency[x, k]).
        levels: admissible discrete coupling values, or None for continuous.
    """

    adjacency: np.ndarray
    couplings: np.ndarray
    levels: Optional[Tuple] = None
    N: int = field(init=False)
    cache: LocalFieldCache = field(init=False, repr=False)

    def __post_init__(self) -> None:
        adjacency = np.array(self.adjacency, dtype=np.int64)
        if adjacency.ndim != 2 or adjacency.shape[0] == 0:
            raise ValueError(f"adjacency must be a non-empty (N, K) array, given shape {adjacency.shape}")
        n, k = adjacency.shape
        if k == 0:
            raise ValueError("degree must be positive")
        if adjacency.min() < 0 or adjacency.max() >= n:
            raise ValueError("adjacency entries out of range")
        if self.levels is not None:
            self.levels = check_levels(self.levels)
        dtype = level_dtype(self.levels)
        raw = np.asarray(self.couplings)
        if raw.shape != adjacency.shape:
            raise ValueError(
                f"incompatible shapes of adjacency and couplings: {adjacency.shape}, {raw.shape}"
            )
        if self.levels is not None:
            allowed = set(self.levels)
            bad = [v for v in raw.ravel().tolist() if v not in allowed]
            if bad:
                raise ValueError(f"the given couplings are incompatible with levels {self.levels}: {bad[0]!r}")
        couplings = raw.astype(dtype)
        self._check_symmetric(adjacency, couplings)

        adjacency.flags.writeable = False
        couplings.flags.writeable = False
        self.adjacency = adjacency
        self.couplings = couplings
        self.N = n
        self.discr = make_discr(dtype, self.levels is not None)
        # touched: every distinct neighbour; active: those with a non-zero bond
        self._touched: List[Tuple[int, ...]] = [tuple(_distinct(row)) for row in adjacency]
        self._active: List[Tuple[int, ...]] = []
        for x in range(n):
            nz = adjacency[x][couplings[x] != 0]
            self._active.append(tuple(_distinct(nz)))
        self.cache = LocalFieldCache(n, dtype)

    @staticmethod
    def _check_symmetric(adjacency: np.ndarray, couplings: np.ndarray) -> None:
        n = adjacency.shape[0]
        bonds: List[Counter] = [Counter() for _ in range(n)]
        for x in range(n):
            for y, jxy in zip(adjacency[x].tolist(), couplings[x].tolist()):
                if y == x:
                    raise ValueError(f"self-loop at node {x}")
                bonds[x][(y, jxy)] += 1
        for x in range(n):
            for (y, jxy), cnt in bonds[x].items():
                if bonds[y][(x, jxy)] != cnt:
                    raise ValueError(f"asymmetric coupling on edge ({x}, {y})")

    @property
    def degree(self) -> int:
        return int(self.adjacency.shape[1])

    @property
    def discrete(self) -> bool:
        return self.levels is not None

    def energy(self, config: np.ndarray) -> Any:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        return seed_pairwise(self.cache, self.adjacency, self.couplings, config, self.discr)

    def delta_energy(self, config: np.ndarray, move: int) -> Any:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        return self.cache.delta(move).item()

    def apply_move(self, config: np.ndarray, move: int) -> None:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        assert self.cache.seeded, "energy() must be called before apply_move"
        flip_pairwise(
            self.cache,
            self.adjacency,
            self.couplings,
            self._touched[move],
            config,
            move,
            self.discr,
        )

    def neighbors(self, i: int) -> Tuple[int, ...]:
        return self._active[i]

    def touched(self, move: int) -> Tuple[int, ...]:
        return self._touched[move]

    def possible_deltas(self) -> Tuple:
        if self.levels is None:
            raise ValueError("continuous couplings have no finite set of delta energies")
        return pairwise_deltas(self.levels, self.degree, self.discr)
