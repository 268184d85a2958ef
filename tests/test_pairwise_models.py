from __future__ import annotations

import numpy as np
import pytest

from flipcore.energy import check_cache, clone_model, flipped
from flipcore.pairwise import PairwiseGraph
from graphs.lattice.edwards_anderson import GraphEA, GraphEANormal, gen_ea
from graphs.rrg.random_regular import GraphRRG, GraphRRGNormal


def walk_and_check(model, rng, steps=150, repeat_prob=0.4, atol=0.0):
    """Random flips; after each one compare with a from-scratch evaluation."""
    config = rng.integers(2, size=model.N).astype(np.int8)
    E = model.energy(config)
    last = None
    for _ in range(steps):
        if last is not None and rng.random() < repeat_prob:
            i = last
        else:
            i = int(rng.integers(model.N))
        dE = model.delta_energy(config, i)
        expected = clone_model(model).energy(flipped(config, i)) - E
        if atol == 0.0:
            assert dE == expected
        else:
            assert abs(dE - expected) <= atol
        config[i] ^= 1
        model.apply_move(config, i)
        E = E + dE
        drift, e_full = check_cache(model, config)
        assert drift <= atol
        assert abs(E - e_full) <= atol
        last = i
    return config


def test_rrg_incremental_matches_full_recomputation() -> None:
    rng = np.random.default_rng(0)
    model = GraphRRG(30, 3, seed=1)
    walk_and_check(model, rng)


def test_rrg_zero_level_neighbors_skip_unbonded() -> None:
    rng = np.random.default_rng(2)
    model = GraphRRG(24, 4, levels=(-1, 0, 1), seed=3)
    for x in range(model.N):
        bonded = {int(y) for y, j in zip(model.adjacency[x], model.couplings[x]) if j != 0}
        assert set(model.neighbors(x)) == bonded
        assert set(model.touched(x)) == {int(y) for y in model.adjacency[x]}
    walk_and_check(model, rng)


def test_ea_two_and_three_dimensions() -> None:
    rng = np.random.default_rng(4)
    walk_and_check(GraphEA(5, 2, seed=5), rng)
    walk_and_check(GraphEA(3, 3, levels=(-2, 1, 3), seed=6), rng, steps=80)


def test_ea_side_two_double_bonds_stay_exact() -> None:
    rng = np.random.default_rng(7)
    model = GraphEA(2, 3, levels=(-1, 1), seed=8)
    assert model.adjacency.shape == (8, 6)
    for x in range(model.N):
        assert len(model.touched(x)) == 3
    walk_and_check(model, rng, steps=200)


def test_float_levels_are_rounded_consistently() -> None:
    rng = np.random.default_rng(9)
    model = GraphEA(4, 2, levels=(-0.5, 0.25, 1.5), seed=10)
    assert model.couplings.dtype == np.float64
    walk_and_check(model, rng, atol=1e-9)


def test_continuous_models_within_rounding() -> None:
    rng = np.random.default_rng(11)
    walk_and_check(GraphRRGNormal(20, 3, seed=12), rng, atol=1e-9)
    walk_and_check(GraphEANormal(4, 2, seed=13), rng, atol=1e-9)


def test_flip_flip_restores_fields_bit_identical() -> None:
    rng = np.random.default_rng(14)
    model = GraphRRG(20, 3, levels=(-1, 2), seed=15)
    config = rng.integers(2, size=model.N).astype(np.int8)
    model.energy(config)
    for i in (0, 5, 5, 7):
        config[i] ^= 1
        model.apply_move(config, i)
    before = model.cache.lfields.copy()
    for _ in range(2):
        config[3] ^= 1
        model.apply_move(config, 3)
    assert model.cache.lfields.tolist() == before.tolist()
    assert model.cache.move_last == 3


def test_energy_reseeds_and_clears_last_move() -> None:
    model = GraphRRG(10, 3, seed=16)
    config = np.zeros(model.N, dtype=np.int8)
    model.energy(config)
    config[1] = 1
    model.apply_move(config, 1)
    assert model.cache.move_last == 1
    model.energy(config)
    assert model.cache.move_last is None
    assert not model.cache.lfields_last.any()


def test_ferromagnet_ground_state_energy() -> None:
    model = GraphRRG(12, 3, levels=(1,), seed=17)
    config = np.ones(model.N, dtype=np.int8)
    # every edge satisfied: E = -N K / 2
    assert model.energy(config) == -18
    assert model.delta_energy(config, 0) == 6


def test_possible_deltas() -> None:
    assert GraphRRG(10, 3, seed=18).possible_deltas() == (2, 6)
    assert GraphRRG(10, 4, seed=19).possible_deltas() == (0, 4, 8)
    assert GraphEA(4, 2, seed=20).possible_deltas() == (0, 4, 8)
    assert GraphEA(4, 1, levels=(1, 2), seed=21).possible_deltas() == (0, 2, 4, 6, 8)
    with pytest.raises(ValueError):
        GraphRRGNormal(10, 3, seed=22).possible_deltas()


def test_observed_deltas_belong_to_possible_deltas() -> None:
    rng = np.random.default_rng(23)
    model = GraphEA(4, 2, levels=(-1, 0, 2), seed=24)
    allowed = set(model.possible_deltas())
    config = rng.integers(2, size=model.N).astype(np.int8)
    model.energy(config)
    for _ in range(200):
        i = int(rng.integers(model.N))
        assert abs(model.delta_energy(config, i)) in allowed
        config[i] ^= 1
        model.apply_move(config, i)


def test_construction_validation() -> None:
    adjacency = gen_ea(3, 1)
    good = np.ones(adjacency.shape, dtype=int)
    PairwiseGraph(adjacency, good, (1,))
    with pytest.raises(ValueError):
        PairwiseGraph(adjacency, good, (-1, 2))
    with pytest.raises(ValueError):
        PairwiseGraph(adjacency, good[:2], (1,))
    with pytest.raises(ValueError):
        PairwiseGraph(adjacency, good, (1, 1))
    with pytest.raises(ValueError):
        PairwiseGraph(adjacency, good, "ab")
    asym = good.copy()
    asym[0, 0] = -1
    with pytest.raises(ValueError):
        PairwiseGraph(adjacency, asym, (-1, 1))
    loop = adjacency.copy()
    loop[0, 0] = 0
    with pytest.raises(ValueError):
        PairwiseGraph(loop, good)


def test_topology_is_immutable() -> None:
    model = GraphRRG(10, 3, seed=25)
    with pytest.raises(ValueError):
        model.adjacency[0, 0] = 1
    with pytest.raises(ValueError):
        model.couplings[0, 0] = 1


def test_lattice_normal_accepts_custom_coupling_draw() -> None:
    model = GraphEANormal(3, 2, draw=lambda: 0.25)
    assert model.couplings.shape == (9, 4)
    assert np.all(model.couplings == 0.25)
    rng = np.random.default_rng(4)
    model = GraphEANormal(4, 2, draw=lambda: float(rng.uniform(-1.0, 1.0)))
    assert np.all(np.abs(model.couplings) <= 1.0)
    walk_and_check(model, np.random.default_rng(5), atol=1e-9)
