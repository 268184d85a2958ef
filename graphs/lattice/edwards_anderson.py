"""Edwards-Anderson models: spins on a periodic D-dimensional lattice of side L.

Each of the N = L^D sites is bonded to its +1 neighbour along every axis, with
wrap-around, so every row of the adjacency has 2D slots. For L = 2 the +1 and
-1 neighbours coincide: each row lists D distinct neighbours twice, and each
such pair of sites is joined by two independent bonds.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from flipcore.levels import check_levels, level_dtype
from flipcore.pairwise import PairwiseGraph
from flipcore.residual import ResidualDecorator
from graphs.couplings import assign_couplings, discretize_couplings, random_levels, random_normal

__all__ = [
    "gen_ea",
    "unique_neighbors",
    "load_ea_couplings",
    "GraphEA",
    "GraphEANormal",
    "GraphEANormalDiscretized",
    "load_ea_normal",
]


def gen_ea(L: int, D: int) -> np.ndarray:
    """Adjacency (L^D, 2D) of the periodic lattice, rows sorted."""
    if L < 2:
        raise ValueError(f"L must be >= 2, given: {L}")
    if D < 1:
        raise ValueError(f"D must be >= 1, given: {D}")
    dims = (L,) * D
    n = L ** D
    rows: List[List[int]] = [[] for _ in range(n)]
    for x in range(n):
        coords = np.unravel_index(x, dims)
        for d in range(D):
            shifted = list(coords)
            shifted[d] = (shifted[d] + 1) % L
            y = int(np.ravel_multi_index(tuple(shifted), dims))
            rows[x].append(y)
            rows[y].append(x)
    return np.array([sorted(r) for r in rows], dtype=np.int64)


def unique_neighbors(adjacency: np.ndarray) -> List[Tuple[int, ...]]:
    return [tuple(sorted(set(int(y) for y in row))) for row in adjacency]


def _fill_slot(adjacency: np.ndarray, filled: np.ndarray, x: int, y: int) -> int:
    slots = np.flatnonzero((adjacency[x] == y) & ~filled[x])
    if slots.size == 0:
        raise ValueError(f"bond ({x + 1}, {y + 1}) is not a free lattice bond")
    filled[x, slots[0]] = True
    return int(slots[0])


def load_ea_couplings(path: Union[str, Path]) -> Tuple[int, int, np.ndarray, np.ndarray]:
    """Read a two-dimensional lattice with explicit couplings.

    Format: three header lines `type: ...`, `size: L`, `name: ...`, then one
    `x y J` line per bond with 1-based site indices.

    Returns:
        (L, D, adjacency, couplings)
    """
    D = 2
    lines = Path(path).read_text().splitlines()
    if len(lines) < 3 or not lines[0].strip().startswith("type:"):
        raise ValueError(f"{path}: missing 'type:' header")
    size = lines[1].split()
    if len(size) != 2 or size[0] != "size:":
        raise ValueError(f"{path}: malformed 'size:' header")
    L = int(size[1])
    if not lines[2].strip().startswith("name:"):
        raise ValueError(f"{path}: missing 'name:' header")
    adjacency = gen_ea(L, D)
    couplings = np.zeros(adjacency.shape, dtype=np.float64)
    filled = np.zeros(adjacency.shape, dtype=bool)
    for lineno, line in enumerate(lines[3:], start=4):
        if not line.strip():
            continue
        parts = line.split()
        if len(parts) != 3:
            raise ValueError(f"{path}:{lineno}: expected 'x y J', given {line!r}")
        x, y, jxy = int(parts[0]) - 1, int(parts[1]) - 1, float(parts[2])
        kx = _fill_slot(adjacency, filled, x, y)
        ky = _fill_slot(adjacency, filled, y, x)
        couplings[x, kx] = jxy
        couplings[y, ky] = jxy
    if not filled.all():
        x, s = np.argwhere(~filled)[0]
        raise ValueError(f"{path}: no coupling given for bond ({x + 1}, {adjacency[x, s] + 1})")
    return L, D, adjacency, couplings


def GraphEA(
    L: int,
    D: int,
    levels: Sequence = (-1, 1),
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> PairwiseGraph:
    """Edwards-Anderson lattice with couplings drawn uniformly from `levels`."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    adjacency = gen_ea(L, D)
    couplings = assign_couplings(random_levels(lev, rng), adjacency, level_dtype(lev))
    return PairwiseGraph(adjacency, couplings, lev)


def GraphEANormal(
    L: int,
    D: int,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    draw: Optional[Callable[[], float]] = None,
) -> PairwiseGraph:
    """Edwards-Anderson lattice with continuous couplings.

    `draw` is called once per bond; it defaults to unit-variance Gaussian
    samples from `rng`.
    """
    rng = rng if rng is not None else np.random.default_rng(seed)
    adjacency = gen_ea(L, D)
    draw = draw if draw is not None else random_normal(rng)
    couplings = assign_couplings(draw, adjacency, np.float64)
    return PairwiseGraph(adjacency, couplings)


def load_ea_normal(path: Union[str, Path]) -> PairwiseGraph:
    """Continuous Edwards-Anderson model with couplings read from `path`."""
    _, _, adjacency, couplings = load_ea_couplings(path)
    return PairwiseGraph(adjacency, couplings)


def GraphEANormalDiscretized(
    L: int,
    D: int,
    levels: Sequence,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> ResidualDecorator:
    """Gaussian couplings split into a `levels` part and a continuous residual."""
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    adjacency = gen_ea(L, D)
    cJ = assign_couplings(random_normal(rng), adjacency, np.float64)
    dJ, rJ = discretize_couplings(cJ, lev)
    return ResidualDecorator(PairwiseGraph(adjacency, dJ, lev), PairwiseGraph(adjacency, rJ))
