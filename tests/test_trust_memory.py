import numpy as np
import pytest

from syntrometry.memory.buffer import MemoryBuffer
from syntrometry.memory.trust import compute_trust


def filled(*vectors, capacity: int = 15) -> MemoryBuffer:
    buf = MemoryBuffer(capacity)
    for v in vectors:
        buf.push(np.asarray(v, dtype=float))
    return buf


def test_buffer_is_fifo_bounded() -> None:
    buf = MemoryBuffer(3)
    evicted = [buf.push(np.array([float(i)])) for i in range(5)]
    assert len(buf) == 3
    assert evicted[:3] == [None, None, None]
    assert evicted[3].embedding[0] == 0.0
    assert evicted[4].embedding[0] == 1.0
    assert [float(e[0]) for e in buf.embeddings()] == [2.0, 3.0, 4.0]


def test_buffer_stores_copies() -> None:
    vec = np.array([1.0, 2.0])
    buf = filled(vec)
    vec[:] = 0.0
    assert np.allclose(buf[0].embedding, [1.0, 2.0])


def test_buffer_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        MemoryBuffer(0)


def test_trust_empty_memory_is_full_trust() -> None:
    assert compute_trust(np.array([1.0, 2.0]), MemoryBuffer(4)) == 1.0


def test_trust_zero_embedding_is_zero() -> None:
    assert compute_trust(np.zeros(3), filled([1.0, 0.0, 0.0])) == 0.0


def test_trust_without_matching_dimension_is_neutral() -> None:
    assert compute_trust(np.ones(3), filled([1.0, 0.0], [1.0, 0.0, 0.0, 0.0])) == 0.5


def test_trust_tracks_average_similarity() -> None:
    e = np.array([1.0, 0.0])
    assert compute_trust(e, filled([2.0, 0.0])) == pytest.approx(1.0)
    assert compute_trust(e, filled([-1.0, 0.0])) == pytest.approx(0.0)
    assert compute_trust(e, filled([0.0, 1.0])) == pytest.approx(0.5)
    assert compute_trust(e, filled([1.0, 0.0], [-1.0, 0.0])) == pytest.approx(0.5)


def test_trust_skips_mismatched_entries() -> None:
    e = np.array([1.0, 1.0, 1.0])
    assert compute_trust(e, filled([1.0, 1.0, 1.0], [5.0, -5.0])) == pytest.approx(1.0)


def test_trust_zero_memory_entry_counts_as_orthogonal() -> None:
    e = np.array([1.0, 0.0])
    assert compute_trust(e, filled([0.0, 0.0], [1.0, 0.0])) == pytest.approx(0.75)


def test_trust_stays_in_unit_interval() -> None:
    rng = np.random.default_rng(5)
    buf = MemoryBuffer(10)
    for _ in range(30):
        e = rng.normal(size=4)
        assert 0.0 <= compute_trust(e, buf) <= 1.0
        buf.push(e)
