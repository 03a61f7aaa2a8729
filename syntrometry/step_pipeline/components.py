"""
Construction of the per-agent sub-components used by every step.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..config import AgentConfig
from ..dynamics.perturbation import Enyphansyntrix
from ..geometry.condensation import Strukturkondensation
from ..memory.transforms import FixedTransforms, build_transforms
from ..types import ACTION_LABELS


@dataclass
class AgentComponents:
    """Everything a Ready agent needs besides its persisted state."""
    perturbation: Enyphansyntrix
    cascade: Strukturkondensation
    transforms: FixedTransforms
    rng: np.random.Generator


def build_components(cfg: AgentConfig, rng: np.random.Generator) -> AgentComponents:
    """Build all sub-components. Raises on invalid configuration."""
    cfg.validate()
    transforms = build_transforms(cfg, rng, n_actions=len(ACTION_LABELS))
    return AgentComponents(
        perturbation=Enyphansyntrix.from_config(cfg, rng),
        cascade=Strukturkondensation.from_config(cfg),
        transforms=transforms,
        rng=rng,
    )
