"""Random K-SAT: energy is the number of violated clauses.

Variables are 0-based; a literal with polarity True is satisfied when the
variable is 1, a literal with polarity False when it is 0.

Local-field convention (see flipcore.local_fields): lf[i] = -ΔE_i where
    ΔE_i = #{a ∋ i : i is the sole satisfier of a} - #{a ∋ i : a violated}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from flipcore.clause_cache import ClauseCache
from flipcore.deltas import clause_deltas
from flipcore.local_fields import LocalFieldCache

__all__ = ["choose", "gen_random_ksat", "GraphSAT", "GraphRandomKSAT"]


def choose(n: int, k: int, rng: np.random.Generator) -> np.ndarray:
    """`k` distinct indices from range(n), uniformly, returned sorted.

    The k-th pick is drawn from a range shrunk by the k picks already made and
    shifted past each of them, then inserted at its sorted position.
    """
    assert 0 < k <= n, f"need 0 < K <= N, given N={n} K={k}"
    out: List[int] = []
    for step in range(k):
        c = int(rng.integers(n - step))
        pos = 0
        for prev in out:
            if prev <= c:
                c += 1
                pos += 1
            else:
                break
        out.insert(pos, c)
    return np.array(out, dtype=np.int64)


def gen_random_ksat(
    n: int,
    k: int,
    alpha: float,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """round(alpha * n) clauses of `k` distinct variables with random polarities."""
    if n <= 0:
        raise ValueError(f"N must be positive: {n}")
    if k <= 0:
        raise ValueError(f"K must be positive: {k}")
    if alpha < 0:
        raise ValueError(f"alpha must be non-negative: {alpha}")
    if n < k:
        raise ValueError(f"N must not be less than K: {n} < {k}")
    rng = rng if rng is not None else np.random.default_rng()
    m = int(round(alpha * n))
    clauses = [choose(n, k, rng) for _ in range(m)]
    polarities = [rng.integers(2, size=k).astype(bool) for _ in range(m)]
    return clauses, polarities


@dataclass
class GraphSAT:
    """K-SAT instance with a clause-satisfaction cache."""

    N: int
    clauses: Sequence[Sequence[int]]
    polarities: Sequence[Sequence[bool]]
    cache: LocalFieldCache = field(init=False, repr=False)
    clause_cache: ClauseCache = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.N <= 0:
            raise ValueError(f"N must be positive: {self.N}")
        if len(self.clauses) != len(self.polarities):
            raise ValueError(
                f"incompatible lengths of clauses and polarities: {len(self.clauses)} vs {len(self.polarities)}"
            )
        clauses: List[Tuple[int, ...]] = []
        polarities: List[Tuple[bool, ...]] = []
        for a, (ca, ja) in enumerate(zip(self.clauses, self.polarities)):
            ca = tuple(int(i) for i in ca)
            ja = tuple(bool(j) for j in ja)
            if len(ca) == 0 or len(ca) != len(ja):
                raise ValueError(f"clause {a}: {len(ca)} variables, {len(ja)} polarities")
            if len(set(ca)) != len(ca):
                raise ValueError(f"clause {a}: repeated variable in {ca}")
            if min(ca) < 0 or max(ca) >= self.N:
                raise ValueError(f"clause {a}: variable out of range in {ca}")
            clauses.append(ca)
            polarities.append(ja)
        self.clauses = tuple(clauses)
        self.polarities = tuple(polarities)
        self.M = len(clauses)
        self.K = max((len(c) for c in clauses), default=0)

        var_clauses: List[List[int]] = [[] for _ in range(self.N)]
        for a, ca in enumerate(clauses):
            for i in ca:
                var_clauses[i].append(a)
        self.var_clauses = tuple(tuple(t) for t in var_clauses)

        neighb: List[Tuple[int, ...]] = []
        for i in range(self.N):
            seen: List[int] = []
            for a in self.var_clauses[i]:
                for j in clauses[a]:
                    if j != i and j not in seen:
                        seen.append(j)
            neighb.append(tuple(seen))
        self._neighb = tuple(neighb)
        self.max_conn = max((len(t) for t in self.var_clauses), default=0)

        self.clause_cache = ClauseCache([len(c) for c in clauses])
        self.cache = LocalFieldCache(self.N, np.int64)

    def energy(self, config: np.ndarray) -> int:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        cc = self.clause_cache
        cc.clear()
        for a in range(self.M):
            for i, ja in zip(self.clauses[a], self.polarities[a]):
                if bool(config[i]) == ja:
                    cc.append(a, i)
        sat = cc.sat
        lf = self.cache.lfields
        for i in range(self.N):
            delta = 0
            for a in self.var_clauses[i]:
                sa = sat[a]
                if sa == 1 and cc.satisfiers[a][0] == i:
                    delta += 1
                elif sa == 0:
                    delta -= 1
            lf[i] = -delta
        self.cache.mark_seeded()
        return cc.violated()

    def delta_energy(self, config: np.ndarray, move: int) -> int:
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        return int(self.cache.delta(move))

    def apply_move(self, config: np.ndarray, move: int) -> None:
        """Re-walk every clause containing `move`; there is no undo shortcut."""
        assert len(config) == self.N, f"different N: {len(config)} {self.N}"
        assert 0 <= move < self.N, f"move out of range: {move}"
        assert self.cache.seeded, "energy() must be called before apply_move"
        cc = self.clause_cache
        lf = self.cache.lfields
        for a in self.var_clauses[move]:
            sa = int(cc.sat[a])
            if sa == 0:
                # violated -> satisfied by `move` alone
                cc.append(a, move)
                lf[move] -= 2
                for j in self.clauses[a]:
                    if j != move:
                        lf[j] -= 1
                continue
            k = cc.position(a, move)
            if k >= 0:
                cc.swap_remove(a, k)
                if sa == 1:
                    lf[move] += 2
                    for j in self.clauses[a]:
                        if j != move:
                            lf[j] += 1
                elif sa == 2:
                    # the remaining satisfier becomes pivotal
                    lf[cc.satisfiers[a][0]] -= 1
            else:
                if sa == 1:
                    lf[cc.satisfiers[a][0]] += 1
                cc.append(a, move)

    def neighbors(self, i: int) -> Tuple[int, ...]:
        return self._neighb[i]

    def possible_deltas(self) -> Tuple[int, ...]:
        return clause_deltas(self.max_conn)

    def violated(self) -> int:
        return self.clause_cache.violated()


def GraphRandomKSAT(
    n: int,
    k: int,
    alpha: float,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> GraphSAT:
    """Random K-SAT graph with `n` variables and round(alpha * n) clauses."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    clauses, polarities = gen_random_ksat(n, k, alpha, rng)
    return GraphSAT(n, clauses, polarities)
