"""Interfaces for single-flip energy models.

Exposes strict typed Protocols for models and their local-field caches.
"""

from __future__ import annotations

from typing import Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .local_fields import LocalFieldCache

__all__ = [
    "Config",
    "EnergyModel",
    "LocalFieldModel",
    "SupportsResidual",
]

# Binary variable states owned by the caller: config[i] in {0, 1}.
Config = np.ndarray


@runtime_checkable
class EnergyModel(Protocol):
    """A model answering energy queries for single-variable flips."""

    N: int

    def energy(self, config: Config) -> float:
        """Full recomputation of the total energy; reseeds every cache."""
        ...

    def delta_energy(self, config: Config, move: int) -> float:
        """Energy change that flipping `move` would cause (O(1) cache read)."""
        ...

    def apply_move(self, config: Config, move: int) -> None:
        """Update caches after the caller has flipped `config[move]`."""
        ...

    def neighbors(self, i: int) -> Sequence[int]:
        """Variables whose cached fields a flip of `i` rewrites."""
        ...

    def possible_deltas(self) -> Tuple:
        """Sorted finite set of delta-energy magnitudes."""
        ...


@runtime_checkable
class LocalFieldModel(EnergyModel, Protocol):
    """An EnergyModel backed by a LocalFieldCache."""

    cache: LocalFieldCache

    def touched(self, move: int) -> Sequence[int]:
        """All distinct variables whose field a flip of `move` can rewrite."""
        ...


@runtime_checkable
class SupportsResidual(Protocol):
    """Optional split of the delta into discretized and residual parts."""

    def delta_energy_residual(self, config: Config, move: int) -> float:
        ...
