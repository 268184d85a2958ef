"""Discretized + continuous residual decomposition.

A continuous-coupling model is split into a discrete approximation (`base`)
and the leftover (`residual`) on the same topology. Both layers carry their
own LocalFieldCache; their `move_last` markers must move together so that the
undo fast path can swap both caches in lockstep.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple

import numpy as np

from .interfaces import LocalFieldModel

__all__ = ["ResidualDecorator"]


@dataclass
class ResidualDecorator:
    """Energy = base energy + residual energy; same for deltas."""

    base: LocalFieldModel
    residual: LocalFieldModel
    N: int = field(init=False)

    def __post_init__(self) -> None:
        if self.base.N != self.residual.N:
            raise ValueError(f"layers differ in size: {self.base.N} vs {self.residual.N}")
        for i in range(self.base.N):
            if tuple(self.base.touched(i)) != tuple(self.residual.touched(i)):
                raise ValueError(f"layers differ in topology at variable {i}")
        self.N = self.base.N

    @property
    def synchronized(self) -> bool:
        return self.base.cache.move_last == self.residual.cache.move_last

    def energy(self, config: np.ndarray) -> float:
        e0 = self.base.energy(config)
        e1 = self.residual.energy(config)
        return float(e0 + e1)

    def delta_energy_residual(self, config: np.ndarray, move: int) -> float:
        return float(self.residual.delta_energy(config, move))

    def delta_energy(self, config: np.ndarray, move: int) -> float:
        d0 = self.base.delta_energy(config, move)
        d1 = self.delta_energy_residual(config, move)
        return float(d0 + d1)

    def apply_move(self, config: np.ndarray, move: int) -> None:
        assert 0 <= move < self.N, f"move out of range: {move}"
        if not self.synchronized:
            # bring the discrete layer up to date, then the residual on its own
            self.base.apply_move(config, move)
            self.residual.apply_move(config, move)
            return
        if self.residual.cache.move_last == move:
            ys = self.residual.touched(move)
            self.base.cache.undo(move, ys)
            self.residual.cache.undo(move, ys)
            return
        self.base.apply_move(config, move)
        self.residual.apply_move(config, move)
        assert self.synchronized, "layers lost synchronization"

    def neighbors(self, i: int) -> Tuple[int, ...]:
        return tuple(self.residual.touched(i))

    def touched(self, move: int) -> Tuple[int, ...]:
        return tuple(self.residual.touched(move))

    def possible_deltas(self) -> Tuple[Any, ...]:
        """Delta set of the discrete layer; the residual is unbounded."""
        return self.base.possible_deltas()
