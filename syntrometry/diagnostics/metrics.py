"""syntrometry/diagnostics/metrics.py

Scalar metrics derived from the condensation cascade.

Components
----------
- Reflexive integration (RIH / coherence score):
      clip(|mean(v) / std(v)| * rih_scale, 0, 1)
  with population statistics (ddof=0). A vector with fewer than two elements,
  or whose standard deviation is below 1e-9, scores exactly 0.
- Affinity (Affinitätssyndrom): cosine similarity of two vectors after
  zero-padding the shorter one, clipped to [-1, 1]. Empty inputs or a norm
  product below 1e-9 give 0.
- Cascade variance: population variance of a cascade level, clipped to
  [0, 10]; 0 for levels with fewer than two elements.

Important semantics
-------------------
None of these raise on degenerate input. Degenerate cases are part of the
contract and return the documented default. Non-finite input is *not*
sanitized here; the step pipeline checks finiteness at its own boundaries.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

EPS_STD = 1e-9
EPS_NORM = 1e-9
CASCADE_VARIANCE_MAX = 10.0


def _as_vector(x) -> np.ndarray:
    if x is None:
        return np.zeros(0, dtype=float)
    return np.asarray(x, dtype=float).reshape(-1)


def reflexive_integration(values, rih_scale: float = 0.5) -> float:
    """Coherence score of a 1-D vector in [0, 1]."""
    v = _as_vector(values)
    if v.size < 2:
        return 0.0
    std = float(np.std(v))
    if not std >= EPS_STD:
        return 0.0
    score = abs(float(np.mean(v)) / std) * float(rih_scale)
    return float(np.clip(score, 0.0, 1.0))


def affinity(a, b) -> float:
    """Cosine similarity of `a` and `b`, zero-padding the shorter vector."""
    va = _as_vector(a)
    vb = _as_vector(b)
    if va.size == 0 or vb.size == 0:
        return 0.0
    n = max(va.size, vb.size)
    if va.size < n:
        va = np.pad(va, (0, n - va.size))
    if vb.size < n:
        vb = np.pad(vb, (0, n - vb.size))
    norm_prod = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if not norm_prod >= EPS_NORM:
        return 0.0
    return float(np.clip(float(np.dot(va, vb)) / norm_prod, -1.0, 1.0))


def cascade_affinities(history: Sequence[np.ndarray]) -> list[float]:
    """Affinity of each adjacent pair of cascade levels (len(history) - 1 values)."""
    return [affinity(history[i], history[i + 1]) for i in range(len(history) - 1)]


def mean_affinity(affinities: Sequence[float]) -> float:
    if not affinities:
        return 0.0
    return float(np.mean(np.asarray(affinities, dtype=float)))


def cascade_variance(level) -> float:
    """Variance feature of a cascade level, clipped to [0, CASCADE_VARIANCE_MAX]."""
    v = _as_vector(level)
    if v.size <= 1:
        return 0.0
    return float(np.clip(float(np.var(v)), 0.0, CASCADE_VARIANCE_MAX))


def vector_norm(values) -> float:
    v = _as_vector(values)
    if v.size == 0:
        return 0.0
    return float(np.linalg.norm(v))
