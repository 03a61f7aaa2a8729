"""syntrometry/dynamics/perturbation.py

Enyphansyntrix: the per-step perturbation operator.

Modes
-----
- continuous: x + N(0, sigma^2) per element, clipped to [-1, 1].
- discrete:   round(x / tau) * tau per element (lattice quantization),
              clipped to [-1, 1]. sigma is ignored.

A wrong-length or missing input yields zeros(D); the operator never raises
on shape problems.

The input modulation used by the orchestrator (coherence/reflexivity bias and
the perturbation scale schedule) also lives here so that every rule touching
the raw state before encoding sits in one module.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..config import PERTURBATION_MODES, AgentConfig

logger = logging.getLogger(__name__)

SIGMA_MIN = 0.001
SIGMA_MAX = 0.05


class Enyphansyntrix:
    """Adds controlled noise to, or lattice-quantizes, a state vector."""

    def __init__(
        self,
        dim: int,
        mode: str = "continuous",
        *,
        tau: float = 0.1,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.dim = int(dim)
        if mode not in PERTURBATION_MODES:
            logger.warning("Unknown perturbation mode %r; defaulting to 'continuous'.", mode)
            mode = "continuous"
        self.mode = mode
        self.tau = float(tau)
        self.rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_config(cls, cfg: AgentConfig, rng: np.random.Generator) -> "Enyphansyntrix":
        return cls(cfg.dimensions, cfg.perturbation_mode, tau=cfg.metron_tau, rng=rng)

    def apply(self, state, sigma: float = 0.01) -> np.ndarray:
        if state is None:
            return np.zeros(self.dim, dtype=float)
        x = np.asarray(state, dtype=float).reshape(-1)
        if x.size != self.dim:
            return np.zeros(self.dim, dtype=float)

        if self.mode == "discrete":
            out = np.round(x / self.tau) * self.tau
        else:
            out = x + self.rng.normal(0.0, max(0.0, float(sigma)), size=self.dim)
        return np.clip(out, -1.0, 1.0)

    def __repr__(self) -> str:
        return f"Enyphansyntrix(dim={self.dim}, mode={self.mode!r})"


def modulate_input(state: np.ndarray, last_coherence: float, reflexivity: float) -> np.ndarray:
    """Bias the raw state by the previous coherence, signed by reflexivity.

    reflexivity > 0.5 pushes the state up, < 0.5 pushes it down; the push
    vanishes when the previous step had no coherence.
    """
    bias = float(last_coherence) * (float(reflexivity) * 2.0 - 1.0) * 0.1
    return np.clip(np.asarray(state, dtype=float) + bias, -1.0, 1.0)


def perturbation_scale(last_coherence: float, reflexivity: float) -> float:
    """Noise scale: more noise when coherence was low or reflexivity is high."""
    sigma = 0.005 + (1.0 - float(last_coherence)) * 0.02 + float(reflexivity) * 0.02
    return float(np.clip(sigma, SIGMA_MIN, SIGMA_MAX))
