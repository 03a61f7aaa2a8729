"""syntrometry/geometry/condensation.py

Synkolator stages and the Strukturkondensation cascade.

A Synkolator reduces a 1-D vector of length L with window arity k:

    pyramidal:  out[i] = mean(in[i : i + k]),   len(out) = max(0, L - k + 1)
    average:    out    = [mean(in)]

An empty output is the cascade's stop signal, not an error.

The cascade chains stages: level 0 is (a copy of) the input, level i+1 is
stage_i(level i). It stops after the first empty level is appended, so the
history is shorter than M + 1 whenever the vector collapses early. With
arity k = 2 and input [1, 2, 3, 4]:

    level 0: [1, 2, 3, 4]
    level 1: [1.5, 2.5, 3.5]
    level 2: [2.0, 3.0]
    level 3: [2.5]
    level 4: []            <- stop

The cascade holds no state between calls and uses no randomness.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from ..config import SYNKOLATOR_TYPES, AgentConfig

logger = logging.getLogger(__name__)

CascadeHistory = Tuple[np.ndarray, ...]


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=float)


class Synkolator:
    """One condensation stage."""

    def __init__(self, arity: int = 2, kind: str = "pyramidal") -> None:
        self.arity = max(2, int(arity))
        if kind not in SYNKOLATOR_TYPES:
            logger.warning("Unsupported synkolator type %r; using 'pyramidal'.", kind)
            kind = "pyramidal"
        self.kind = kind

    def apply(self, elements: np.ndarray) -> np.ndarray:
        v = np.asarray(elements, dtype=float)
        if v.ndim != 1 or v.size == 0:
            return _empty()
        if self.kind == "average":
            return np.array([float(np.mean(v))], dtype=float)
        k = self.arity
        if v.size < k:
            return _empty()
        # Sliding-window mean via cumulative sums: O(L) regardless of k.
        csum = np.concatenate(([0.0], np.cumsum(v)))
        return (csum[k:] - csum[:-k]) / float(k)

    def __repr__(self) -> str:
        return f"Synkolator(arity={self.arity}, kind={self.kind!r})"


class Strukturkondensation:
    """Cascade of Synkolator stages producing a multi-level history."""

    def __init__(self, stages: Sequence[Synkolator]) -> None:
        self.stages: List[Synkolator] = list(stages)

    @classmethod
    def from_config(cls, cfg: AgentConfig) -> "Strukturkondensation":
        stages = [
            Synkolator(cfg.stage_arity(level), cfg.synkolator_type)
            for level in range(int(cfg.cascade_levels))
        ]
        return cls(stages)

    def process(self, initial) -> CascadeHistory:
        """Run the cascade on `initial`.

        Invalid input (None, not 1-D, empty, non-finite) yields a history of a
        single empty level.
        """
        if initial is None:
            return (_empty(),)
        v = np.asarray(initial, dtype=float)
        if v.ndim != 1 or v.size == 0 or not np.all(np.isfinite(v)):
            logger.debug("Cascade input rejected (shape=%s).", v.shape)
            return (_empty(),)

        history: List[np.ndarray] = [v.copy()]
        current = history[0]
        for stage in self.stages:
            nxt = stage.apply(current)
            history.append(nxt)
            if nxt.size == 0:
                break
            current = nxt
        return tuple(history)

    def __repr__(self) -> str:
        return f"Strukturkondensation(stages={self.stages!r})"
