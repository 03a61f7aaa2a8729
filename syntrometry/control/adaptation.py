"""syntrometry/control/adaptation.py

Heuristic closed-loop adaptation of the two control parameters.

Rules (accumulated additively into two deltas, in this order):

  1. (trust > 0.7 and coherence > 0.7) or (d_coherence > 0.02 and trust > 0.6)
        integration += 1.0, reflexivity -= 1.0          exploit stability
  2. elif coherence < 0.3 or trust < 0.4 or (d_coherence < -0.03 and trust < 0.7)
        integration -= 1.0, reflexivity += 1.2          favor exploration
  3. if variance > high or d_variance > rising
        integration += 0.6 * clip(variance - high, 0, 1)
        reflexivity += 0.4 * clip(d_variance, 0, 0.1)
  4. elif variance < low and d_variance <= 0
        reflexivity += 0.3                              leave a stagnant minimum
  5. both += (0.5 - current) * decay_factor             mean reversion

new = clip(current + delta * learning_rate, 0.05, 0.95)

Rules 1/2 and 3/4 are two independent if/elif pairs; rule 3 stacks on top of
whichever of 1/2 fired. The thresholds are tuning, not policy.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..config import PARAM_MAX, PARAM_MIN, AdaptationConfig

logger = logging.getLogger(__name__)

NEUTRAL = 0.5


@dataclass(frozen=True)
class AdaptationResult:
    integration: float
    reflexivity: float
    integration_delta: float
    reflexivity_delta: float
    rules: Tuple[str, ...] = ()


def read_param(value, name: str = "parameter") -> float:
    """Read a control parameter, substituting the neutral value on failure."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        logger.warning("Could not read %s=%r; using %.1f for this step.", name, value, NEUTRAL)
        return NEUTRAL
    if not math.isfinite(v):
        logger.warning("Non-finite %s=%r; using %.1f for this step.", name, value, NEUTRAL)
        return NEUTRAL
    return v


def adapt_parameters(
    *,
    trust: float,
    coherence: float,
    prev_coherence: float,
    cascade_variance: float,
    prev_cascade_variance: float,
    integration,
    reflexivity,
    cfg: AdaptationConfig,
) -> AdaptationResult:
    """Compute the next (integration, reflexivity) pair. Pure."""
    d_coh = float(coherence) - float(prev_coherence)
    d_var = float(cascade_variance) - float(prev_cascade_variance)
    var = float(cascade_variance)

    d_int = 0.0
    d_ref = 0.0
    fired = []

    if (trust > 0.7 and coherence > 0.7) or (d_coh > 0.02 and trust > 0.6):
        d_int += 1.0
        d_ref -= 1.0
        fired.append("exploit")
    elif coherence < 0.3 or trust < 0.4 or (d_coh < -0.03 and trust < 0.7):
        d_int -= 1.0
        d_ref += 1.2
        fired.append("explore")

    high = float(cfg.high_variance_threshold)
    if var > high or d_var > float(cfg.increasing_variance_threshold):
        d_int += 0.6 * float(np.clip(var - high, 0.0, 1.0))
        d_ref += 0.4 * float(np.clip(d_var, 0.0, 0.1))
        fired.append("damp_variance")
    elif var < float(cfg.low_variance_threshold) and d_var <= 0.0:
        d_ref += 0.3
        fired.append("unstick")

    cur_int = read_param(integration, "integration")
    cur_ref = read_param(reflexivity, "reflexivity")
    d_int += (NEUTRAL - cur_int) * float(cfg.decay_factor)
    d_ref += (NEUTRAL - cur_ref) * float(cfg.decay_factor)

    lr = float(cfg.learning_rate)
    return AdaptationResult(
        integration=float(np.clip(cur_int + d_int * lr, PARAM_MIN, PARAM_MAX)),
        reflexivity=float(np.clip(cur_ref + d_ref * lr, PARAM_MIN, PARAM_MAX)),
        integration_delta=d_int,
        reflexivity_delta=d_ref,
        rules=tuple(fired),
    )
