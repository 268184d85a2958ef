"""Call contract used by an external single-flip sampler, plus consistency checks.

Typical loop (the accept/reject rule lives in the sampler):

    E = energy(model, config)
    for i in proposals:
        dE = delta_energy(model, config, i)
        if accept(dE):
            config[i] ^= 1
            apply_move(model, config, i)
            E += dE
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from .interfaces import Config, EnergyModel

__all__ = [
    "energy",
    "delta_energy",
    "apply_move",
    "neighbors",
    "possible_deltas",
    "spins",
    "flipped",
    "clone_model",
    "check_cache",
]


def energy(model: EnergyModel, config: Config) -> Any:
    """Full recomputation; mandatory before any delta/commit call."""
    return model.energy(config)


def delta_energy(model: EnergyModel, config: Config, i: int) -> Any:
    return model.delta_energy(config, i)


def apply_move(model: EnergyModel, config: Config, i: int) -> None:
    """Update caches after the caller flipped config[i]; never touches config."""
    model.apply_move(config, i)


def neighbors(model: EnergyModel, i: int) -> Sequence[int]:
    return model.neighbors(i)


def possible_deltas(model: EnergyModel) -> Tuple:
    return model.possible_deltas()


def spins(config: Config) -> np.ndarray:
    """σ = 2s - 1."""
    return 2 * np.asarray(config, dtype=np.int64) - 1


def flipped(config: Config, i: int) -> np.ndarray:
    out = np.array(config, copy=True)
    out[i] = 1 - out[i]
    return out


def clone_model(model: EnergyModel) -> EnergyModel:
    """Independent model + cache pair, e.g. one per parallel walker."""
    return copy.deepcopy(model)


def _caches(model: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if hasattr(model, "base") and hasattr(model, "residual"):
        out.update({f"base.{k}": v for k, v in _caches(model.base).items()})
        out.update({f"residual.{k}": v for k, v in _caches(model.residual).items()})
        return out
    if hasattr(model, "cache"):
        out["lfields"] = model.cache.lfields
    if hasattr(model, "clause_cache"):
        out["sat"] = model.clause_cache.sat
    return out


def check_cache(model: EnergyModel, config: Config) -> Tuple[float, Any]:
    """Compare the live caches with an independent from-scratch evaluation.

    Returns:
        (max absolute field drift over every cache layer, recomputed energy)
    """
    fresh = clone_model(model)
    e_full = fresh.energy(config)
    live = _caches(model)
    ref = _caches(fresh)
    drift = 0.0
    for key, arr in live.items():
        diff = np.abs(np.asarray(arr, dtype=float) - np.asarray(ref[key], dtype=float))
        if diff.size:
            drift = max(drift, float(diff.max()))
    return drift, e_full
