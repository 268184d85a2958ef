"""Clause satisfaction bookkeeping for K-SAT models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

__all__ = ["ClauseCache"]


@dataclass
class ClauseCache:
    """S[a] = number of satisfied literals of clause a; I[a][:S[a]] = their variables.

    Each I[a] has the clause's length as fixed capacity; slots past the live
    count are stale. Removal swaps the last live entry into the hole.
    """

    sizes: Sequence[int]
    sat: np.ndarray = field(init=False, repr=False)
    satisfiers: List[np.ndarray] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.sizes = tuple(int(k) for k in self.sizes)
        self.sat = np.zeros(len(self.sizes), dtype=np.int64)
        self.satisfiers = [np.zeros(k, dtype=np.int64) for k in self.sizes]

    @property
    def M(self) -> int:
        return len(self.sizes)

    def clear(self) -> None:
        self.sat.fill(0)
        for ia in self.satisfiers:
            ia.fill(0)

    def append(self, a: int, i: int) -> None:
        sa = int(self.sat[a])
        assert sa < self.sizes[a], f"clause {a} already fully satisfied"
        self.satisfiers[a][sa] = i
        self.sat[a] = sa + 1

    def position(self, a: int, i: int) -> int:
        """Index of `i` in the live prefix of I[a], or -1."""
        ia = self.satisfiers[a]
        for k in range(int(self.sat[a])):
            if ia[k] == i:
                return k
        return -1

    def swap_remove(self, a: int, k: int) -> None:
        sa = int(self.sat[a])
        assert 0 <= k < sa, f"slot {k} not live in clause {a}"
        ia = self.satisfiers[a]
        ia[k] = ia[sa - 1]
        self.sat[a] = sa - 1

    def live(self, a: int) -> np.ndarray:
        return self.satisfiers[a][: int(self.sat[a])]

    def violated(self) -> int:
        return int(np.count_nonzero(self.sat == 0))
