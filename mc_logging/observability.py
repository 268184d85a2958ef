from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import warnings

import numpy as np

from flipcore.energy import check_cache
from flipcore.interfaces import EnergyModel, SupportsResidual
from mc_logging.metrics_log import log_records


@dataclass
class CacheCoherenceTracker:
    """Check every committed move against a from-scratch evaluation and log it.

    Usage:
        tracker = CacheCoherenceTracker(run_id="rrg-3")
        E = model.energy(config)
        ...
        config[i] ^= 1; model.apply_move(config, i); E += dE
        tracker.record(model, config, i, dE, E)
        tracker.flush()

    The check clones the model, so it costs a full evaluation per step.
    """

    name: str = "cache_coherence"
    run_id: str = "default"
    log_dir: Optional[Union[str, Path]] = None
    tolerance: float = 1e-9
    buffer: List[Dict[str, Any]] = field(default_factory=list)
    step: int = 0
    max_drift: float = 0.0
    failures: int = 0

    def record(
        self,
        model: EnergyModel,
        config: np.ndarray,
        move: int,
        delta: float,
        energy_incremental: float,
    ) -> bool:
        self.step += 1
        drift, e_full = check_cache(model, config)
        energy_error = abs(float(energy_incremental) - float(e_full))
        ok = drift <= self.tolerance and energy_error <= self.tolerance
        self.max_drift = max(self.max_drift, drift)
        if not ok:
            self.failures += 1
        self.buffer.append(
            {
                "run_id": self.run_id,
                "step": int(self.step),
                "move": int(move),
                "delta_energy": float(delta),
                "energy_incremental": float(energy_incremental),
                "energy_full": float(e_full),
                "energy_error": float(energy_error),
                "field_drift": float(drift),
                "ok": int(ok),
            }
        )
        return ok

    def flush(self) -> Optional[Path]:
        if not self.buffer:
            return None
        out = log_records(self.name, self.buffer, log_dir=self.log_dir)
        self.buffer.clear()
        return out


@dataclass
class DeltaHistogramTracker:
    """Histogram of observed |ΔE| against the model's finite delta set."""

    name: str = "delta_histogram"
    run_id: str = "default"
    log_dir: Optional[Union[str, Path]] = None
    allowed: Optional[Tuple[Any, ...]] = None
    counts: Dict[float, int] = field(default_factory=dict)
    unexpected: int = 0

    def attach(self, model: EnergyModel) -> None:
        try:
            self.allowed = tuple(model.possible_deltas())
        except ValueError:
            # continuous model: nothing to classify against
            self.allowed = None

    def observe(self, model: EnergyModel, config: np.ndarray, move: int) -> None:
        """Record the discrete part of the delta a flip of `move` would cause."""
        delta = model.delta_energy(config, move)
        if isinstance(model, SupportsResidual):
            delta = delta - model.delta_energy_residual(config, move)
        self.on_delta(delta)

    def on_delta(self, delta: float) -> None:
        mag = abs(float(delta))
        if self.allowed is not None:
            hits = [float(a) for a in self.allowed if np.isclose(float(a), mag, rtol=0.0, atol=1e-9)]
            if not hits:
                self.unexpected += 1
                warnings.warn(f"|ΔE|={mag} not in the model's delta set", RuntimeWarning)
            else:
                mag = hits[0]
        self.counts[mag] = self.counts.get(mag, 0) + 1

    def rows(self) -> List[Dict[str, Any]]:
        return [
            {"run_id": self.run_id, "abs_delta": float(k), "count": int(v)}
            for k, v in sorted(self.counts.items())
        ]

    def flush(self) -> Optional[Path]:
        rows = self.rows()
        if not rows:
            return None
        out = log_records(self.name, rows, log_dir=self.log_dir)
        self.counts.clear()
        return out
