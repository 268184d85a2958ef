"""Random single-flip walk checking incremental caches against full recomputation.

Usage:
    python tools/validate_cache.py --family rrg --n 200 --k 3 --steps 500
    python tools/validate_cache.py --family ea-discretized --L 6 --D 2 --levels=-1,0,1
    python tools/validate_cache.py --family sat --n 100 --k 3 --alpha 4.2 --log-dir logs

Every step is accepted (no temperature); with probability --repeat-prob the
previous variable is flipped again so the undo fast path is exercised.
Exit status is 0 when every step matched, 1 otherwise.
"""

from __future__ import annotations

import argparse
from typing import Any, Dict, Optional, Tuple

import numpy as np

from flipcore.interfaces import EnergyModel
from graphs.fields.fields import GraphFields, GraphFieldsNormalDiscretized
from graphs.lattice.edwards_anderson import GraphEA, GraphEANormal, GraphEANormalDiscretized
from graphs.rrg.random_regular import GraphRRG, GraphRRGNormal, GraphRRGNormalDiscretized
from graphs.sat.ksat import GraphRandomKSAT
from mc_logging.observability import CacheCoherenceTracker, DeltaHistogramTracker

FAMILIES = (
    "rrg",
    "rrg-normal",
    "rrg-discretized",
    "ea",
    "ea-normal",
    "ea-discretized",
    "fields",
    "fields-discretized",
    "sat",
)


def parse_levels(text: str) -> Tuple:
    vals = []
    for tok in text.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            vals.append(int(tok))
        except ValueError:
            vals.append(float(tok))
    return tuple(vals)


def build_model(
    family: str,
    n: int,
    k: int,
    L: int,
    D: int,
    alpha: float,
    levels: Tuple,
    rng: np.random.Generator,
) -> EnergyModel:
    if family == "rrg":
        return GraphRRG(n, k, levels, rng=rng)
    if family == "rrg-normal":
        return GraphRRGNormal(n, k, rng=rng)
    if family == "rrg-discretized":
        return GraphRRGNormalDiscretized(n, k, levels, rng=rng)
    if family == "ea":
        return GraphEA(L, D, levels, rng=rng)
    if family == "ea-normal":
        return GraphEANormal(L, D, rng=rng)
    if family == "ea-discretized":
        return GraphEANormalDiscretized(L, D, levels, rng=rng)
    if family == "fields":
        return GraphFields(n, levels, rng=rng)
    if family == "fields-discretized":
        return GraphFieldsNormalDiscretized(n, levels, rng=rng)
    if family == "sat":
        return GraphRandomKSAT(n, k, alpha, rng=rng)
    raise ValueError(f"unknown family: {family}")


def run(
    model: EnergyModel,
    steps: int,
    rng: np.random.Generator,
    repeat_prob: float = 0.3,
    run_id: str = "default",
    tolerance: float = 1e-8,
    log_dir: Optional[str] = None,
) -> Dict[str, Any]:
    assert steps >= 0, "steps must be non-negative"
    assert 0.0 <= repeat_prob <= 1.0, "repeat_prob out of bounds"
    tracker = CacheCoherenceTracker(run_id=run_id, log_dir=log_dir, tolerance=tolerance)
    hist = DeltaHistogramTracker(run_id=run_id, log_dir=log_dir)
    hist.attach(model)
    config = rng.integers(2, size=model.N).astype(np.int8)
    E = model.energy(config)
    last: Optional[int] = None
    for _ in range(steps):
        if last is not None and rng.random() < repeat_prob:
            i = last
        else:
            i = int(rng.integers(model.N))
        dE = model.delta_energy(config, i)
        hist.observe(model, config, i)
        config[i] ^= 1
        model.apply_move(config, i)
        E += dE
        tracker.record(model, config, i, dE, E)
        last = i
    summary = {
        "run_id": run_id,
        "steps": int(steps),
        "failures": int(tracker.failures),
        "max_drift": float(tracker.max_drift),
        "unexpected_deltas": int(hist.unexpected),
        "final_energy": float(E),
    }
    if log_dir is not None:
        tracker.flush()
        hist.flush()
    return summary


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--family", choices=FAMILIES, default="rrg")
    ap.add_argument("--n", type=int, default=100, help="Number of variables (rrg, fields, sat)")
    ap.add_argument("--k", type=int, default=3, help="Degree (rrg) or clause length (sat)")
    ap.add_argument("--L", type=int, default=8, help="Lattice side (ea)")
    ap.add_argument("--D", type=int, default=2, help="Lattice dimension (ea)")
    ap.add_argument("--alpha", type=float, default=4.0, help="Clause density (sat)")
    ap.add_argument("--levels", default="-1,1", help="Comma separated levels, e.g. --levels=-1,1")
    ap.add_argument("--steps", type=int, default=500)
    ap.add_argument("--repeat-prob", type=float, default=0.3)
    ap.add_argument("--tolerance", type=float, default=1e-8)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--run-id", default="default")
    ap.add_argument("--log-dir", default=None, help="Write CSV traces here (polars)")
    args = ap.parse_args()

    rng = np.random.default_rng(args.seed)
    model = build_model(
        args.family, args.n, args.k, args.L, args.D, args.alpha, parse_levels(args.levels), rng
    )
    summary = run(
        model,
        steps=args.steps,
        rng=rng,
        repeat_prob=args.repeat_prob,
        run_id=args.run_id,
        tolerance=args.tolerance,
        log_dir=args.log_dir,
    )
    status = "OK" if summary["failures"] == 0 and summary["unexpected_deltas"] == 0 else "FAIL"
    print({"status": status, "family": args.family, **summary})
    return 0 if status == "OK" else 1


if __name__ == "__main__":
    raise SystemExit(main())
