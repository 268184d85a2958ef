"""Level sets (LEV) for discrete couplings and fields."""

from __future__ import annotations

from numbers import Integral, Real
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "MAXDIGITS",
    "check_levels",
    "level_dtype",
    "make_discr",
    "discretize",
]

# Decimal digits kept by discrete float caches after each incremental update.
MAXDIGITS = 10


def check_levels(levels: Any) -> Tuple:
    """Validate a level set and return it as a tuple.

    Raises:
        ValueError: not a non-empty sequence of reals, repeated levels, or
            more than MAXDIGITS decimal digits.
    """
    if not isinstance(levels, (tuple, list)) or len(levels) == 0:
        raise ValueError(f"invalid level set, expected a tuple of reals, given: {levels!r}")
    for lev in levels:
        if isinstance(lev, bool) or not isinstance(lev, Real):
            raise ValueError(f"invalid level set, expected a tuple of reals, given: {levels!r}")
        if not np.isfinite(float(lev)):
            raise ValueError(f"non-finite level in {levels!r}")
    if len(set(levels)) != len(levels):
        raise ValueError(f"repeated levels in LEV: {levels!r}")
    for lev in levels:
        if not isinstance(lev, Integral) and round(float(lev), MAXDIGITS) != float(lev):
            raise ValueError(
                f"up to {MAXDIGITS} decimal digits supported in levels, given: {levels!r}"
            )
    return tuple(levels)


def level_dtype(levels: Optional[Sequence]) -> Any:
    """int64 when every level is integral, float64 otherwise (or when continuous)."""
    if levels is None:
        return np.float64
    if all(isinstance(lev, Integral) or float(lev).is_integer() for lev in levels):
        return np.int64
    return np.float64


def make_discr(dtype: Any, discrete: bool) -> Callable[[Any], Any]:
    """Conversion applied to every value written into a cache."""
    if np.dtype(dtype).kind == "i":
        return lambda x: int(round(x))
    if discrete:
        return lambda x: round(float(x), MAXDIGITS)
    return float


def discretize(values: np.ndarray, levels: Sequence) -> Tuple[np.ndarray, np.ndarray]:
    """Split continuous values into (nearest level, residual).

    Ties go to the level declared first. `discrete + residual == values`.
    """
    lev = np.asarray(levels, dtype=float)
    vals = np.asarray(values, dtype=float)
    idx = np.argmin(np.abs(vals[..., None] - lev), axis=-1)
    dtype = level_dtype(levels)
    discrete = np.asarray(levels, dtype=dtype)[idx]
    residual = vals - discrete.astype(float)
    return discrete, residual
