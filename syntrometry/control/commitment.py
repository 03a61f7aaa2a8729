"""syntrometry/control/commitment.py

Action selection: dominant emotion and head-movement classification.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ..memory.transforms import DenseStack
from ..types import ACTION_LABELS, EMOTION_NAMES, IDLE


def dominant_emotion(emotions: np.ndarray) -> Tuple[int, str]:
    """Index and name of the strongest emotion channel; (-1, "Unknown") when empty."""
    e = np.asarray(emotions, dtype=float).reshape(-1)
    if e.size == 0:
        return -1, "Unknown"
    idx = int(np.argmax(e))
    name = EMOTION_NAMES[idx] if idx < len(EMOTION_NAMES) else "Unknown"
    return idx, name


def select_action(
    head: DenseStack,
    *,
    coherence: float,
    avg_affinity: float,
    emotions: np.ndarray,
) -> Tuple[str, str]:
    """Return (action_label, dominant_emotion_name).

    The head sees [coherence, avg_affinity, dominant_index, *emotions] and the
    label is the arg-max of its logits. No dominant emotion means "idle".
    """
    idx, name = dominant_emotion(emotions)
    if idx < 0:
        return IDLE, name
    features = np.concatenate(
        ([float(coherence), float(avg_affinity), float(idx)], np.asarray(emotions, dtype=float).reshape(-1))
    )
    logits = head(features)
    label_idx = int(np.argmax(logits))
    label = ACTION_LABELS[label_idx] if label_idx < len(ACTION_LABELS) else IDLE
    return label, name
