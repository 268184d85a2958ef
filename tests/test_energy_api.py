from __future__ import annotations

import numpy as np
import pytest

from flipcore import apply_move, delta_energy, energy, neighbors, possible_deltas
from flipcore.energy import check_cache, clone_model, flipped, spins
from flipcore.interfaces import EnergyModel, LocalFieldModel
from graphs.fields.fields import GraphFields, GraphFieldsNormalDiscretized
from graphs.lattice.edwards_anderson import GraphEA
from graphs.rrg.random_regular import GraphRRG
from graphs.sat.ksat import GraphRandomKSAT


def test_models_satisfy_protocols() -> None:
    models = [
        GraphRRG(10, 3, seed=0),
        GraphEA(3, 2, seed=1),
        GraphFields(5),
        GraphFieldsNormalDiscretized(5, (-1, 1), seed=2),
        GraphRandomKSAT(10, 3, 2.0, seed=3),
    ]
    for model in models:
        assert isinstance(model, EnergyModel)
    assert isinstance(models[0], LocalFieldModel)
    assert isinstance(models[2], LocalFieldModel)


def test_call_contract_round() -> None:
    model = GraphEA(4, 2, seed=4)
    config = np.zeros(model.N, dtype=np.int8)
    E = energy(model, config)
    dE = delta_energy(model, config, 5)
    config[5] ^= 1
    apply_move(model, config, 5)
    assert energy(clone_model(model), config) == E + dE
    assert len(neighbors(model, 5)) == 4
    assert possible_deltas(model) == (0, 4, 8)


def test_apply_move_never_touches_config() -> None:
    model = GraphRRG(12, 3, seed=5)
    config = np.random.default_rng(6).integers(2, size=model.N)
    model.energy(config)
    config[2] ^= 1
    snapshot = config.copy()
    model.apply_move(config, 2)
    assert config.tolist() == snapshot.tolist()


def test_spins_and_flipped() -> None:
    config = np.array([0, 1, 1])
    assert spins(config).tolist() == [-1, 1, 1]
    out = flipped(config, 0)
    assert out.tolist() == [1, 1, 1]
    assert config.tolist() == [0, 1, 1]


def test_clones_are_independent_walkers() -> None:
    model = GraphRRG(16, 3, seed=7)
    config_a = np.zeros(model.N, dtype=np.int8)
    model.energy(config_a)
    other = clone_model(model)
    config_b = config_a.copy()
    config_b[0] ^= 1
    other.apply_move(config_b, 0)
    assert model.cache.move_last is None
    drift, _ = check_cache(model, config_a)
    assert drift == 0.0
    drift, _ = check_cache(other, config_b)
    assert drift == 0.0


def test_check_cache_detects_corruption() -> None:
    model = GraphRRG(10, 3, seed=8)
    config = np.zeros(model.N, dtype=np.int8)
    expected = model.energy(config)
    model.cache.lfields[3] += 4
    drift, e_full = check_cache(model, config)
    assert drift == 4.0
    assert e_full == expected


def test_runtime_preconditions_are_asserted() -> None:
    model = GraphRRG(10, 3, seed=9)
    config = np.zeros(model.N, dtype=np.int8)
    with pytest.raises(AssertionError):
        model.delta_energy(config, 0)
    model.energy(config)
    with pytest.raises(AssertionError):
        model.delta_energy(config, model.N)
    with pytest.raises(AssertionError):
        model.energy(np.zeros(model.N + 1, dtype=np.int8))
