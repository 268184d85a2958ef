"""Independent variables, each subject to a local field.

E(σ) = -Σ_i h_i σ_i. Mostly useful for testing and as the residual layer of a
discretized field model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import numpy as np

from .deltas import field_deltas
from .levels import check_levels, level_dtype, make_discr
from .local_fields import LocalFieldCache

__all__ = ["FieldsGraph"]


@dataclass
class FieldsGraph:
    fields: np.ndarray
    levels: Optional[Tuple] = None
    N: int = field(init=False)
    cache: LocalFieldCache = field(init=False, repr=False)

    def __post_init__(self) -> None:
        raw = np.asarray(self.fields)
        if raw.ndim != 1:
            raise ValueError(f"fields must be one-dimensional, given shape {raw.shape}")
        if self.levels is not None:
            self.levels = check_levels(self.levels)
            allowed = set(self.levels)
            bad = [h for h in raw.tolist() if h not in allowed]
            if bad:
                raise ValueError(f"invalid field value, expected {self.levels}, given: {bad[0]!r}")
        dtype = level_dtype(self.levels)
        fields = raw.astype(dtype)
        fields.flags.writeable = False
        self.fields = fields
        self.N = int(fields.shape[0])
        self.discr = make_discr(dtype, self.levels is not None)
        self.cache = LocalFieldCache(self.N, dtype)

    def energy(self, config: np.ndarray) -> Any:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        sigma = 2 * np.asarray(config, dtype=np.int64) - 1
        lf = self.cache.lfields
        total = 0
        for i in range(self.N):
            e = -self.fields[i] * int(sigma[i])
            lf[i] = self.discr(2 * e)
            total += e
        self.cache.mark_seeded()
        return self.discr(total)

    def delta_energy(self, config: np.ndarray, move: int) -> Any:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        return self.cache.delta(move).item()

    def apply_move(self, config: np.ndarray, move: int) -> None:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        assert self.cache.seeded, "energy() must be called before apply_move"
        if self.cache.move_last == move:
            self.cache.undo(move, ())
            return
        self.cache.flip_self(move)

    def neighbors(self, i: int) -> Tuple[int, ...]:
        return ()

    def touched(self, move: int) -> Tuple[int, ...]:
        return ()

    def possible_deltas(self) -> Tuple:
        if self.levels is None:
            raise ValueError("continuous fields have no finite set of delta energies")
        return tuple(self.discr(d) for d in field_deltas(self.levels))
