"""syntrometry/memory/trust.py

Trust estimation against the memory buffer.

trust(e, M):
  - M empty                    -> 1.0   (nothing to disagree with)
  - ||e|| < 1e-9               -> 0.0   (no direction to compare)
  - no entry with dim(e)       -> 0.5   (neutral)
  - otherwise                  -> (mean_j cos(e, m_j) + 1) / 2

Entries whose norm product with e is below 1e-9 contribute similarity 0.
Entries of a different dimension are skipped, not padded.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .buffer import MemoryBuffer, MemoryEntry

EPS_NORM = 1e-9
TRUST_EMPTY = 1.0
TRUST_ZERO_NORM = 0.0
TRUST_NEUTRAL = 0.5


def compute_trust(embedding, memory: MemoryBuffer | Iterable[MemoryEntry]) -> float:
    entries = list(memory)
    if not entries:
        return TRUST_EMPTY

    e = np.asarray(embedding, dtype=float).reshape(-1)
    e_norm = float(np.linalg.norm(e))
    if not e_norm >= EPS_NORM:
        return TRUST_ZERO_NORM

    sims = []
    for entry in entries:
        m = np.asarray(entry.embedding, dtype=float).reshape(-1)
        if m.size != e.size:
            continue
        norm_prod = e_norm * float(np.linalg.norm(m))
        if not norm_prod >= EPS_NORM:
            sims.append(0.0)
            continue
        sims.append(float(np.clip(float(np.dot(e, m)) / norm_prod, -1.0, 1.0)))

    if not sims:
        return TRUST_NEUTRAL
    avg = float(np.mean(sims))
    return float(np.clip((avg + 1.0) / 2.0, 0.0, 1.0))
