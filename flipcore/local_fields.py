"""Incremental local-field cache shared by the pairwise and field models.

Convention: `lfields[i]` holds minus the energy change of flipping `i`, so the
delta query is `-lfields[i]`. For pairwise models the factor 2 of a flip is
folded into the cache:
    lf[x] = 2 h_x,   h_x = -Σ_y J_xy σ_x σ_y,   E = ½ Σ_x h_x
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

import numpy as np

__all__ = ["LocalFieldCache", "seed_pairwise", "flip_pairwise"]

Discr = Callable[[Any], Any]


@dataclass
class LocalFieldCache:
    """Per-variable fields plus a one-move shadow for the undo fast path.

    `lfields_last` is only meaningful for the neighbours of `move_last` and for
    `move_last` itself; everything else in it is stale.
    """

    n: int
    dtype: Any = np.int64
    lfields: np.ndarray = field(init=False, repr=False)
    lfields_last: np.ndarray = field(init=False, repr=False)
    move_last: Optional[int] = field(default=None, init=False)
    seeded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        assert self.n >= 0, "cache size must be non-negative"
        self.lfields = np.zeros(self.n, dtype=self.dtype)
        self.lfields_last = np.zeros(self.n, dtype=self.dtype)

    def clear(self) -> None:
        self.lfields.fill(0)
        self.lfields_last.fill(0)
        self.move_last = None
        self.seeded = False

    def mark_seeded(self) -> None:
        """Called at the end of a full evaluation."""
        self.lfields_last.fill(0)
        self.move_last = None
        self.seeded = True

    def save(self, ys: Iterable[int]) -> None:
        lf = self.lfields
        lfl = self.lfields_last
        for y in ys:
            lfl[y] = lf[y]

    def flip_self(self, move: int) -> None:
        lfm = self.lfields[move]
        self.lfields_last[move] = lfm
        self.lfields[move] = -lfm
        self.move_last = move

    def undo(self, move: int, ys: Iterable[int]) -> None:
        """Revert the previous flip of `move` by swapping in the shadow values."""
        assert self.move_last == move, "undo requires move == move_last"
        lf = self.lfields
        lfl = self.lfields_last
        for y in ys:
            lf[y], lfl[y] = lfl[y], lf[y]
        lf[move] = -lf[move]
        lfl[move] = -lfl[move]

    def delta(self, move: int) -> Any:
        assert self.seeded, "energy() must be called before delta queries"
        return -self.lfields[move]

    def copy(self) -> "LocalFieldCache":
        out = LocalFieldCache(self.n, self.dtype)
        out.lfields[:] = self.lfields
        out.lfields_last[:] = self.lfields_last
        out.move_last = self.move_last
        out.seeded = self.seeded
        return out


def seed_pairwise(
    cache: LocalFieldCache,
    adjacency: np.ndarray,
    couplings: np.ndarray,
    config: np.ndarray,
    discr: Discr,
) -> Any:
    """Full evaluation: fill `cache` and return E = -Σ_<xy> J_xy σ_x σ_y.

    Every edge appears in both endpoints' rows, hence the halving.
    """
    n = adjacency.shape[0]
    assert len(config) == n, f"different N: {len(config)} {n}"
    assert cache.n == n, "cache size does not match topology"
    sigma = 2 * np.asarray(config, dtype=np.int64) - 1
    lf = cache.lfields
    total = 0
    for x in range(n):
        sx = int(sigma[x])
        acc = 0
        for y, jxy in zip(adjacency[x], couplings[x]):
            acc -= jxy * sx * int(sigma[y])
        total += acc
        lf[x] = discr(2 * acc)
    cache.mark_seeded()
    return discr(total / 2)


def flip_pairwise(
    cache: LocalFieldCache,
    adjacency: np.ndarray,
    couplings: np.ndarray,
    touched: Sequence[int],
    config: np.ndarray,
    move: int,
    discr: Discr,
) -> None:
    """Commit a flip of `move`; `config[move]` already holds the new state.

    Shadows are saved once per distinct neighbour before any slot is applied,
    so lattices with L = 2 (the same neighbour in two slots) stay exact.
    """
    if cache.move_last == move:
        cache.undo(move, touched)
        return
    lf = cache.lfields
    cache.save(touched)
    sx = int(config[move])
    for y, jxy in zip(adjacency[move], couplings[move]):
        # agreement measured after the flip
        sxy = 1 - 2 * (sx ^ int(config[y]))
        lf[y] = discr(lf[y] - 4 * sxy * jxy)
    cache.flip_self(move)
