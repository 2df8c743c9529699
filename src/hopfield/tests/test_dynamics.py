"""Asynchronous recovery: trajectory bookkeeping, convergence and exhaustion."""
import tracemalloc

import numpy as np
import pytest

from hopfield.config import RecoveryParams
from hopfield.data import gen_patterns, corrupt_state
from hopfield.dynamics import recover, RecoveryStatus
from hopfield.metrics import compute_energy
from hopfield.networks import build


M_SINGLE = np.array([[1], [1], [-1], [-1]])


def _random_model(N=100, K=3, seed=0):
    return build(gen_patterns(N, K, rng=np.random.default_rng(seed)))


def test_stored_memory_converges_at_first_check():
    """A stored memory is a fixed point: exact recall fires at step 1."""
    model = build(M_SINGLE)
    s0 = M_SINGLE[:, 0]
    res = recover(model, s0, float(model.energy[0]), patience=1,
                  min_iterations_before_convergence=1, rng=np.random.default_rng(0))
    assert res.converged
    assert res.stop_step == 1 and res.n_steps == 1
    assert res.recalled == 0
    assert np.array_equal(res.final_state, s0)
    assert np.isclose(res.final_energy, model.energy[0])
    assert res.reference_energy == float(model.energy[0])


def test_stored_memory_converges_with_defaults():
    model = _random_model()
    for k in range(model.K):
        res = recover(model, model.memories[:, k], rng=np.random.default_rng(k))
        assert res.status is RecoveryStatus.CONVERGED
        assert res.n_steps <= RecoveryParams().max_iterations
        assert res.recalled == k


def test_threshold_delays_convergence_check():
    """No convergence can be reported before the minimum-iterations threshold."""
    model = build(M_SINGLE)
    res = recover(model, M_SINGLE[:, 0], patience=5, rng=np.random.default_rng(1))
    assert res.stop_step == 5
    assert res.stagnated and res.recalled == 0, "both checks must be evaluated"


def test_trajectory_keys_and_length():
    model = _random_model(N=64, K=2, seed=3)
    rng = np.random.default_rng(9)
    s0 = corrupt_state(model.memories[:, 0], 0.3, rng=rng)
    res = recover(model, s0, max_iterations=50, patience=None, rng=rng)
    assert 1 <= res.n_steps <= 50
    frames, energies = res.as_tuple()
    assert list(frames) == list(range(1, res.n_steps + 1))
    assert frames.keys() == energies.keys()
    for t, s in frames.items():
        assert np.isclose(energies[t], compute_energy(model, s))


def test_energy_is_non_increasing():
    model = _random_model(N=64, K=4, seed=5)
    rng = np.random.default_rng(6)
    s0 = np.where(rng.random(model.N) < 0.5, -1, 1)
    res = recover(model, s0, max_iterations=500, patience=None, rng=rng)
    assert np.all(np.diff(res.energies) <= 1e-9)


def test_noisy_memory_is_recalled():
    model = _random_model(N=100, K=3, seed=0)
    rng = np.random.default_rng(1)
    target = model.memories[:, 1]
    s0 = corrupt_state(target, 0.1, rng=rng)
    res = recover(model, s0, model.energy[1], max_iterations=5000, patience=None, rng=rng)
    assert res.converged and res.recalled == 1
    assert np.array_equal(res.final_state, target)
    assert res.final_energy <= compute_energy(model, s0)


def test_exhausted_when_no_memory_is_reached():
    """-m is a stable spurious state: without stagnation the budget runs out."""
    model = build(M_SINGLE)
    s0 = -M_SINGLE[:, 0]
    res = recover(model, s0, max_iterations=30, patience=None, rng=np.random.default_rng(2))
    assert res.status is RecoveryStatus.EXHAUSTED
    assert not res.converged
    assert res.n_steps == 30 == res.stop_step
    assert res.recalled is None


def test_stagnation_on_spurious_state():
    model = build(M_SINGLE)
    s0 = -M_SINGLE[:, 0]
    res = recover(model, s0, max_iterations=30, patience=4, rng=np.random.default_rng(2))
    assert res.converged and res.stagnated
    assert res.recalled is None
    assert res.stop_step == 4


def test_initial_state_left_untouched_and_reproducible():
    model = _random_model(N=49, K=2, seed=8)
    s0 = corrupt_state(model.memories[:, 0], 0.2, rng=np.random.default_rng(0))
    before = s0.copy()
    a = recover(model, s0, max_iterations=200, rng=np.random.default_rng(42))
    b = recover(model, s0, max_iterations=200, rng=np.random.default_rng(42))
    assert np.array_equal(s0, before)
    assert np.array_equal(a.frames, b.frames)
    assert np.array_equal(a.energies, b.energies)


def test_params_object_and_overrides():
    model = build(M_SINGLE)
    p = RecoveryParams(max_iterations=7, patience=None)
    res = recover(model, -M_SINGLE[:, 0], params=p, rng=np.random.default_rng(0))
    assert res.n_steps == 7
    res = recover(model, -M_SINGLE[:, 0], params=p, max_iterations=3, rng=np.random.default_rng(0))
    assert res.n_steps == 3
    with pytest.raises(TypeError):
        recover(model, M_SINGLE[:, 0], not_a_field=1)


@pytest.mark.parametrize("bad", [
    [1, 1, -1],              # wrong length
    [1, 1, 0, -1],           # not bipolar
    [[1, 1], [-1, -1]],      # not 1D
])
def test_invalid_initial_state(bad):
    model = build(M_SINGLE)
    with pytest.raises(ValueError):
        recover(model, bad)


def test_progress_bar_does_not_change_result():
    model = build(M_SINGLE)
    a = recover(model, -M_SINGLE[:, 0], max_iterations=10, patience=None,
                rng=np.random.default_rng(3), show_progress=True)
    b = recover(model, -M_SINGLE[:, 0], max_iterations=10, patience=None,
                rng=np.random.default_rng(3))
    assert np.array_equal(a.frames, b.frames)


def test_large_budget_with_early_convergence_stays_small():
    """Memory follows the executed steps, not max_iterations."""
    model = build(np.ones((500, 1), dtype=int))
    s0 = model.memories[:, 0]
    tracemalloc.start()
    try:
        res = recover(model, s0, max_iterations=1_000_000, patience=1,
                      min_iterations_before_convergence=1, rng=np.random.default_rng(0))
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    assert res.converged and res.n_steps == 1
    assert res.frames.shape == (1, 500) and res.frames.dtype == np.int32
    assert peak < 20e6, f"peak allocation {peak} bytes for a 1-step run"


def test_explicit_threshold_survives_patience_override():
    """min_iterations_before_convergence set by the caller is not re-derived."""
    model = build(M_SINGLE)
    p = RecoveryParams(patience=5, min_iterations_before_convergence=8)
    res = recover(model, M_SINGLE[:, 0], params=p, patience=3, rng=np.random.default_rng(0))
    assert res.stop_step == 8
    assert res.stagnated and res.recalled == 0
