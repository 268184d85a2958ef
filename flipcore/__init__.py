"""Incremental energy caches for single-flip Monte Carlo on spin models."""

from .energy import apply_move, delta_energy, energy, neighbors, possible_deltas
from .fields import FieldsGraph
from .pairwise import PairwiseGraph
from .residual import ResidualDecorator

__all__ = [
    "energy",
    "delta_energy",
    "apply_move",
    "neighbors",
    "possible_deltas",
    "FieldsGraph",
    "PairwiseGraph",
    "ResidualDecorator",
]
