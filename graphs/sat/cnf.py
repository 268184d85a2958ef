"""DIMACS CNF export, optionally after propagating forced literals.

Literals are 1-based signed integers: `+v` means variable v-1 is 1, `-v` that
it is 0.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .ksat import GraphSAT

__all__ = ["ContradictionError", "decimate_clauses", "format_cnf", "write_cnf"]


class ContradictionError(ValueError):
    """The forced literals falsify a clause or contradict each other."""


def _literal(i: int, polarity: bool) -> int:
    return (i + 1) if polarity else -(i + 1)


def decimate_clauses(
    graph: GraphSAT,
    decimate: Sequence[int],
) -> Tuple[List[List[int]], List[int]]:
    """Propagate forced literals through the clause set.

    Satisfied clauses are dropped, falsified literals are removed, and clauses
    shrunk to one literal become new forced literals.

    Returns:
        (remaining clauses as lists of signed literals, all forced literals)
    """
    vars_left = [list(c) for c in graph.clauses]
    pols_left = [list(p) for p in graph.polarities]
    var_clauses = [list(t) for t in graph.var_clauses]

    forced: List[int] = []
    seen = set()
    for v in decimate:
        v = int(v)
        if v == 0 or abs(v) > graph.N:
            raise ValueError(f"invalid literal {v} for N={graph.N}")
        if -v in seen:
            raise ContradictionError(f"literals {v} and {-v} both forced")
        if v not in seen:
            seen.add(v)
            forced.append(v)

    j = 0
    while j < len(forced):
        v = forced[j]
        value = v > 0
        i = abs(v) - 1
        for a in var_clauses[i]:
            if not vars_left[a]:
                continue
            k = vars_left[a].index(i)
            if pols_left[a][k] == value:
                vars_left[a] = []
                pols_left[a] = []
                continue
            if len(vars_left[a]) == 1:
                raise ContradictionError(f"clause {a + 1} falsified by literal {v}")
            del vars_left[a][k]
            del pols_left[a][k]
            if len(vars_left[a]) == 1:
                unit = _literal(vars_left[a][0], pols_left[a][0])
                if -unit in seen:
                    raise ContradictionError(f"clause {a + 1} forces {unit}, but {-unit} is forced")
                if unit not in seen:
                    seen.add(unit)
                    forced.append(unit)
                vars_left[a] = []
                pols_left[a] = []
        var_clauses[i] = []
        j += 1

    remaining = [
        [_literal(i, p) for i, p in zip(ca, ja)]
        for ca, ja in zip(vars_left, pols_left)
        if ca
    ]
    return remaining, forced


def format_cnf(graph: GraphSAT, decimate: Optional[Sequence[int]] = None) -> str:
    if decimate is None:
        clauses = [
            [_literal(i, p) for i, p in zip(ca, ja)]
            for ca, ja in zip(graph.clauses, graph.polarities)
        ]
        units: List[int] = []
    else:
        clauses, units = decimate_clauses(graph, decimate)
    lines = [f"p cnf {graph.N} {len(clauses) + len(units)}"]
    for clause in clauses:
        lines.append(" ".join(str(lit) for lit in clause) + " 0")
    for v in units:
        lines.append(f"{v} 0")
    return "\n".join(lines) + "\n"


def write_cnf(
    graph: GraphSAT,
    path: Union[str, Path],
    decimate: Optional[Sequence[int]] = None,
) -> Path:
    out = Path(path)
    out.write_text(format_cnf(graph, decimate))
    return out
