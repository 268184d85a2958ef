"""Non-interacting variables subject to random local fields."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from flipcore.fields import FieldsGraph
from flipcore.levels import check_levels, discretize, level_dtype
from flipcore.residual import ResidualDecorator

__all__ = ["GraphFields", "GraphFieldsNormalDiscretized"]


def GraphFields(
    n: int,
    levels: Sequence = (1,),
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> FieldsGraph:
    """`n` fields drawn uniformly from `levels`."""
    if n <= 0:
        raise ValueError(f"N must be positive: {n}")
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    vals = np.asarray(lev, dtype=level_dtype(lev))
    return FieldsGraph(vals[rng.integers(len(vals), size=n)], lev)


def GraphFieldsNormalDiscretized(
    n: int,
    levels: Sequence,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> ResidualDecorator:
    """Unit-variance Gaussian fields split into a `levels` part and a residual."""
    if n <= 0:
        raise ValueError(f"N must be positive: {n}")
    rng = rng if rng is not None else np.random.default_rng(seed)
    lev = check_levels(levels)
    dfields, rfields = discretize(rng.standard_normal(n), lev)
    return ResidualDecorator(FieldsGraph(dfields, lev), FieldsGraph(rfields))
