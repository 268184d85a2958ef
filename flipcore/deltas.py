"""Finite sets of delta-energy magnitudes (allΔE).

Used by drivers to classify moves into a fixed list of energy costs; none of
these functions take part in computing an actual delta.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence, Set, Tuple

__all__ = ["signed_sums", "pairwise_deltas", "field_deltas", "clause_deltas"]


def signed_sums(levels: Sequence, degree: int, discr: Callable[[Any], Any]) -> Set:
    """All values of Σ_{k=1..degree} ±l_k with each l_k drawn from `levels`."""
    assert degree >= 0, "degree must be non-negative"
    sums = {discr(0)}
    for _ in range(degree):
        expanded = set()
        for s in sums:
            for lev in levels:
                expanded.add(discr(s + lev))
                expanded.add(discr(s - lev))
        sums = expanded
    return sums


def pairwise_deltas(levels: Sequence, degree: int, discr: Callable[[Any], Any]) -> Tuple:
    """Flip costs 2|Σ J σ| reachable on a node of fixed degree."""
    return tuple(sorted({discr(2 * abs(s)) for s in signed_sums(levels, degree, discr)}))


def field_deltas(levels: Sequence) -> Tuple:
    """Flip costs 2|h| of independent fields."""
    return tuple(sorted({2 * abs(lev) for lev in levels}))


def clause_deltas(max_conn: int) -> Tuple:
    """K-SAT flip costs are integers bounded by the variable's clause count.

    Conservative: not every value in range is necessarily reachable.
    """
    assert max_conn >= 0, "max_conn must be non-negative"
    return tuple(range(max_conn + 1))
