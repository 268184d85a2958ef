"""Generate a random K-SAT instance and write it in DIMACS CNF format.

Usage:
    python tools/export_cnf.py --n 100 --k 3 --alpha 4.2 --out inst.cnf --seed 1
    python tools/export_cnf.py --n 100 --k 3 --alpha 4.2 --out dec.cnf --decimate=1,-7,12
"""

from __future__ import annotations

import argparse
from typing import List, Optional

import numpy as np

from graphs.sat.cnf import ContradictionError, write_cnf
from graphs.sat.ksat import GraphRandomKSAT


def parse_literals(text: Optional[str]) -> Optional[List[int]]:
    if text is None:
        return None
    return [int(tok) for tok in text.split(",") if tok.strip()]


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--n", type=int, required=True)
    ap.add_argument("--k", type=int, default=3)
    ap.add_argument("--alpha", type=float, required=True)
    ap.add_argument("--out", required=True, help="Output .cnf path")
    ap.add_argument("--decimate", default=None, help="Comma separated 1-based signed literals to force")
    ap.add_argument("--seed", type=int, default=None)
    args = ap.parse_args()

    graph = GraphRandomKSAT(args.n, args.k, args.alpha, rng=np.random.default_rng(args.seed))
    try:
        out = write_cnf(graph, args.out, parse_literals(args.decimate))
    except ContradictionError as exc:
        print(f"FAIL: {exc}")
        return 2
    print(f"Wrote N={graph.N} M={graph.M} to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
