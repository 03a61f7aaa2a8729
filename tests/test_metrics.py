import numpy as np
import pytest

from syntrometry.diagnostics.metrics import (affinity, cascade_affinities,
                                             cascade_variance, mean_affinity,
                                             reflexive_integration)


def test_coherence_degenerate_inputs_are_zero() -> None:
    assert reflexive_integration([]) == 0.0
    assert reflexive_integration([0.7]) == 0.0
    assert reflexive_integration([0.3, 0.3, 0.3]) == 0.0
    assert reflexive_integration(None) == 0.0


def test_coherence_uses_population_statistics() -> None:
    # mean 0.5, population std 0.5
    assert reflexive_integration([0.0, 1.0]) == pytest.approx(0.5)
    assert reflexive_integration([0.0, 1.0], rih_scale=0.25) == pytest.approx(0.25)


def test_coherence_is_clipped_to_unit_interval() -> None:
    assert reflexive_integration([1.0, 2.0, 3.0]) == pytest.approx(1.0)
    assert reflexive_integration([-1.0, 1.0]) == pytest.approx(0.0)
    rng = np.random.default_rng(3)
    for _ in range(50):
        v = rng.normal(size=rng.integers(2, 12))
        assert 0.0 <= reflexive_integration(v) <= 1.0


def test_affinity_basic_geometry() -> None:
    a = np.array([1.0, 2.0, -0.5])
    assert affinity(a, a) == pytest.approx(1.0)
    assert affinity(a, -a) == pytest.approx(-1.0)
    assert affinity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


def test_affinity_is_symmetric_and_bounded() -> None:
    rng = np.random.default_rng(11)
    for _ in range(50):
        a = rng.normal(size=rng.integers(1, 8))
        b = rng.normal(size=rng.integers(1, 8))
        ab = affinity(a, b)
        assert ab == pytest.approx(affinity(b, a))
        assert -1.0 <= ab <= 1.0


def test_affinity_zero_pads_shorter_vector() -> None:
    assert affinity([1.0, 0.0], [1.0, 0.0, 0.0]) == pytest.approx(1.0)
    assert affinity([1.0], [1.0, 1.0]) == pytest.approx(1.0 / np.sqrt(2.0))


def test_affinity_degenerate_inputs_are_zero() -> None:
    assert affinity([], [1.0]) == 0.0
    assert affinity([1.0, 2.0], []) == 0.0
    assert affinity([0.0, 0.0], [1.0, 2.0]) == 0.0


def test_cascade_affinities_pairs_adjacent_levels() -> None:
    history = (np.array([1.0, 2.0, 3.0]), np.array([1.5, 2.5]), np.array([2.0]), np.zeros(0))
    values = cascade_affinities(history)
    assert len(values) == 3
    assert values[-1] == 0.0
    assert mean_affinity(values) == pytest.approx(np.mean(values))
    assert mean_affinity([]) == 0.0


def test_cascade_variance() -> None:
    assert cascade_variance([1.0, 2.0, 3.0]) == pytest.approx(2.0 / 3.0)
    assert cascade_variance([5.0]) == 0.0
    assert cascade_variance([]) == 0.0
    assert cascade_variance([0.0, 100.0]) == pytest.approx(10.0)
