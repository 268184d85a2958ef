from __future__ import annotations

import numpy as np
import pytest

from flipcore.energy import check_cache, clone_model, flipped
from flipcore.fields import FieldsGraph
from flipcore.pairwise import PairwiseGraph
from flipcore.residual import ResidualDecorator
from graphs.fields.fields import GraphFieldsNormalDiscretized
from graphs.lattice.edwards_anderson import GraphEANormalDiscretized
from graphs.rrg.random_regular import GraphRRGNormalDiscretized, gen_rrg


def walk(model: ResidualDecorator, rng, steps: int = 150, repeat_prob: float = 0.4) -> None:
    config = rng.integers(2, size=model.N).astype(np.int8)
    E = model.energy(config)
    assert model.synchronized
    last = None
    for _ in range(steps):
        i = last if (last is not None and rng.random() < repeat_prob) else int(rng.integers(model.N))
        dE = model.delta_energy(config, i)
        expected = clone_model(model).energy(flipped(config, i)) - E
        assert dE == pytest.approx(expected, abs=1e-9)
        assert model.base.delta_energy(config, i) + model.delta_energy_residual(config, i) == pytest.approx(dE)
        config[i] ^= 1
        model.apply_move(config, i)
        assert model.synchronized
        assert model.base.cache.move_last == i
        E += dE
        drift, e_full = check_cache(model, config)
        assert drift <= 1e-9
        assert E == pytest.approx(e_full, abs=1e-9)
        last = i


def test_rrg_discretized_stays_coherent() -> None:
    walk(GraphRRGNormalDiscretized(24, 3, (-1, 0, 1), seed=0), np.random.default_rng(1))


def test_ea_discretized_stays_coherent() -> None:
    walk(GraphEANormalDiscretized(4, 2, (-1, 1), seed=2), np.random.default_rng(3))
    walk(GraphEANormalDiscretized(2, 2, (-1, 0, 1), seed=4), np.random.default_rng(5))


def test_fields_discretized_stays_coherent() -> None:
    walk(GraphFieldsNormalDiscretized(10, (-1, 1), seed=6), np.random.default_rng(7))


def test_layers_share_topology_and_split_couplings() -> None:
    model = GraphRRGNormalDiscretized(16, 3, (-1, 0, 1), seed=8)
    assert model.base.adjacency.tolist() == model.residual.adjacency.tolist()
    assert set(np.unique(model.base.couplings).tolist()) <= {-1, 0, 1}
    # nearest level: a residual beyond half a level spacing only past the extremes
    far = np.abs(model.residual.couplings) > 0.5 + 1e-12
    assert np.all(np.abs(model.base.couplings[far]) == 1)
    assert np.all(np.sign(model.base.couplings[far]) == np.sign(model.residual.couplings[far]))
    assert model.possible_deltas() == model.base.possible_deltas()
    for i in range(model.N):
        assert model.neighbors(i) == model.residual.touched(i)


def test_energy_is_sum_of_layers() -> None:
    model = GraphEANormalDiscretized(3, 2, (-1, 1), seed=9)
    config = np.random.default_rng(10).integers(2, size=model.N)
    total = model.energy(config)
    assert total == pytest.approx(model.base.energy(config) + model.residual.energy(config))


def test_lockstep_undo_restores_both_caches() -> None:
    model = GraphRRGNormalDiscretized(20, 3, (-1, 1), seed=11)
    config = np.random.default_rng(12).integers(2, size=model.N)
    model.energy(config)
    base_before = model.base.cache.lfields.copy()
    res_before = model.residual.cache.lfields.copy()
    for _ in range(2):
        config[4] ^= 1
        model.apply_move(config, 4)
    assert model.base.cache.lfields.tolist() == base_before.tolist()
    assert model.residual.cache.lfields.tolist() == res_before.tolist()


def test_desynchronized_layers_are_brought_up_to_date() -> None:
    base = FieldsGraph(np.array([1, -1, 1]), (-1, 1))
    residual = FieldsGraph(np.array([0.1, 0.2, -0.3]))
    model = ResidualDecorator(base, residual)
    config = np.array([0, 1, 1])
    model.energy(config)
    config[0] ^= 1
    base.apply_move(config, 0)
    residual.apply_move(config, 0)
    config[1] ^= 1
    base.apply_move(config, 1)
    config[1] ^= 1
    base.apply_move(config, 1)
    config[1] ^= 1
    # base was flipped twice (undone), residual has not seen var 1 yet
    assert not model.synchronized
    model.apply_move(config, 1)
    drift, _ = check_cache(model, config)
    assert drift == pytest.approx(0.0)


def test_mismatched_layers_rejected() -> None:
    with pytest.raises(ValueError):
        ResidualDecorator(FieldsGraph(np.array([1, 1]), (1,)), FieldsGraph(np.array([0.5])))
    adjacency = np.array([[1], [0]])
    with pytest.raises(ValueError):
        ResidualDecorator(
            PairwiseGraph(adjacency, np.array([[1], [1]]), (1,)),
            FieldsGraph(np.array([0.5, 0.1, 0.2])),
        )
    a = gen_rrg(12, 3, np.random.default_rng(0))
    b = next(
        adj
        for adj in (gen_rrg(12, 3, np.random.default_rng(s)) for s in range(1, 50))
        if not np.array_equal(adj, a)
    )
    with pytest.raises(ValueError):
        ResidualDecorator(
            PairwiseGraph(a, np.ones_like(a), (1,)),
            PairwiseGraph(b, np.full(b.shape, 0.1)),
        )


def test_layers_with_zero_discrete_couplings_share_topology() -> None:
    a = gen_rrg(12, 3, np.random.default_rng(3))
    model = ResidualDecorator(
        PairwiseGraph(a, np.zeros_like(a), (-1, 0, 1)),
        PairwiseGraph(a, np.full(a.shape, 0.3)),
    )
    assert model.N == 12
