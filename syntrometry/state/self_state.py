"""syntrometry/state/self_state.py

Exponentially-weighted self-state and emotion blending.

Self-state:
    rate = base_rate * (0.5 + integration)
    self' = decay * self + trust * rate * embedding

Higher integration folds the current belief in faster; low trust slows the
update. If the stored self-state has the wrong dimension it is replaced by
zeros(H) and the update is skipped for that step.

Emotions:
    emotion' = clip(decay * prev + (1 - decay) * predicted, 0, 1)
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


def update_self_state(
    self_state: np.ndarray,
    embedding: np.ndarray,
    *,
    trust: float,
    integration: float,
    decay: float = 0.98,
    base_rate: float = 0.05,
) -> Tuple[np.ndarray, bool]:
    """Return (new_self_state, was_reset). Inputs are not mutated."""
    e = np.asarray(embedding, dtype=float).reshape(-1)
    s = np.asarray(self_state, dtype=float).reshape(-1)
    if s.shape != e.shape:
        logger.error(
            "Self-state dimension mismatch (%d vs embedding %d); resetting to zeros.",
            s.size,
            e.size,
        )
        return np.zeros_like(e), True
    rate = float(base_rate) * (0.5 + float(integration))
    return float(decay) * s + float(trust) * rate * e, False


def blend_emotions(prev: np.ndarray, predicted: np.ndarray, decay: float = 0.97) -> np.ndarray:
    p = np.asarray(prev, dtype=float).reshape(-1)
    q = np.asarray(predicted, dtype=float).reshape(-1)
    return np.clip(float(decay) * p + (1.0 - float(decay)) * q, 0.0, 1.0)
