"""
syntrometry/config.py

Syntrometric agent configuration.

What this file does
-------------------
This module defines :class:`AgentConfig`, an immutable (frozen) dataclass that
collects *all* numeric hyperparameters referenced by the step pipeline, and
:class:`AdaptationConfig`, the nested block read by the parameter adaptation
controller.

Implementation modules read constants from config rather than hard-coding
them. This file exists to:
  - centralize those constants,
  - provide defaults matching the reference simulation (12-D state, 6 emotion
    channels, 64-D belief embedding, 15-entry memory, 4 cascade stages),
  - make missing/invalid parameters fail fast via validate().

Notes on defaults
-----------------
The activation-free constants (decay rates, learn rates, thresholds) are the
values the reference simulation was tuned with. They are not derived from
anything; treat them as tuning knobs.

This file is deliberately *not* a "framework" configuration system; it's a
plain dataclass with clear, auditable defaults.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace as dc_replace
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError

PERTURBATION_MODES: Tuple[str, ...] = ("continuous", "discrete")
SYNKOLATOR_TYPES: Tuple[str, ...] = ("pyramidal", "average")

# Control parameters always live in this closed interval.
PARAM_MIN = 0.05
PARAM_MAX = 0.95


@dataclass(frozen=True)
class AdaptationConfig:
    """Tuning block for the integration/reflexivity feedback rules."""

    # Scale applied to the accumulated rule delta before committing.
    learning_rate: float = 0.006

    # Mean-reversion strength toward the neutral value 0.5.
    decay_factor: float = 0.03

    # Cascade variance above this is "high" (rule 3).
    high_variance_threshold: float = 0.15

    # Step-over-step variance increase above this is "rising" (rule 3).
    increasing_variance_threshold: float = 0.01

    # Variance below this with no increase counts as stagnant (rule 4).
    low_variance_threshold: float = 0.02

    def validate(self) -> None:
        if self.learning_rate < 0.0:
            raise ConfigurationError("adaptation.learning_rate must be >= 0.")
        if not (0.0 <= self.decay_factor <= 1.0):
            raise ConfigurationError("adaptation.decay_factor must be in [0, 1].")
        for name in ("high_variance_threshold", "increasing_variance_threshold", "low_variance_threshold"):
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"adaptation.{name} must be >= 0.")


@dataclass(frozen=True)
class AgentConfig:
    """
    Immutable configuration for a syntrometric agent.

    Inputs
    ------
    This dataclass is typically constructed either:
      - directly (e.g., AgentConfig(dimensions=..., hidden_dim=...)), or
      - via :func:`default_config` and then :meth:`replace`.

    Outputs
    -------
    An immutable configuration object whose attributes are read by all modules.
    """

    # =========================================================================
    # Dimensions
    # =========================================================================
    # State vector length D. The step boundary pads/truncates to this.
    dimensions: int = 12

    # Emotion vector length E.
    emotion_dim: int = 6

    # Belief embedding / self-state length H.
    hidden_dim: int = 64

    # Auxiliary scalar features fed to the belief encoder alongside the state.
    num_graph_features: int = 2

    # =========================================================================
    # Memory
    # =========================================================================
    # Memory buffer capacity N (FIFO eviction).
    history_size: int = 15

    # =========================================================================
    # Condensation cascade
    # =========================================================================
    # Number of condensation stages M.
    cascade_levels: int = 4

    # Window arity k of the first stage (clamped to >= 2 by the stage).
    cascade_stage: int = 2

    # Arity increment per stage. 0 keeps every stage at `cascade_stage`.
    cascade_stage_growth: int = 0

    # "pyramidal" (sliding-window mean) or "average" (collapse to the mean).
    synkolator_type: str = "pyramidal"

    # =========================================================================
    # Metrics
    # =========================================================================
    # Coherence (RIH) multiplier applied to |mean/std|.
    rih_scale: float = 0.5

    # Lattice quantum for the discrete perturbation mode.
    metron_tau: float = 0.1

    # "continuous" (Gaussian noise) or "discrete" (lattice quantization).
    perturbation_mode: str = "continuous"

    # =========================================================================
    # Persisted-state dynamics
    # =========================================================================
    emotional_decay: float = 0.97
    self_state_decay: float = 0.98
    self_state_learn_rate: float = 0.05

    # Standard deviation of the initial self-state draw.
    self_state_init_std: float = 0.1

    # Scale of the uniform draw for the initial control parameters:
    # value = 0.25 + U[0, 1) * param_init_span.
    param_init_span: float = 0.5

    adaptation: AdaptationConfig = field(default_factory=AdaptationConfig)

    # =========================================================================
    # Bookkeeping
    # =========================================================================
    # Seed for the agent-owned Generator (weights, initial state, noise).
    seed: Optional[int] = None

    # Emit a JSON step event every N steps (0 disables).
    log_every: int = 0

    @property
    def belief_input_dim(self) -> int:
        """Belief encoder input width: perturbed state + graph features + self-state."""
        return int(self.dimensions) + int(self.num_graph_features) + int(self.hidden_dim)

    @property
    def emotion_input_dim(self) -> int:
        """Emotional module input width: state + previous emotions + reward + event flag."""
        return int(self.dimensions) + int(self.emotion_dim) + 2

    @property
    def action_input_dim(self) -> int:
        """Action head input width: coherence + avg affinity + dominant index + emotions."""
        return 3 + int(self.emotion_dim)

    def stage_arity(self, level: int) -> int:
        """Window arity for stage `level` (0-based), never below 2."""
        return max(2, int(self.cascade_stage) + int(level) * int(self.cascade_stage_growth))

    def validate(self) -> None:
        """Raise ConfigurationError on missing or invalid constants."""
        for name in ("dimensions", "emotion_dim", "hidden_dim", "history_size"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool) or v <= 0:
                raise ConfigurationError(f"{name} must be a positive int.")
        if not isinstance(self.num_graph_features, int) or self.num_graph_features < 0:
            raise ConfigurationError("num_graph_features must be a non-negative int.")
        if not isinstance(self.cascade_levels, int) or self.cascade_levels < 0:
            raise ConfigurationError("cascade_levels must be a non-negative int.")
        if not isinstance(self.cascade_stage, int) or self.cascade_stage < 2:
            raise ConfigurationError("cascade_stage must be an int >= 2.")
        if self.cascade_stage_growth < 0:
            raise ConfigurationError("cascade_stage_growth must be >= 0.")
        if self.synkolator_type not in SYNKOLATOR_TYPES:
            raise ConfigurationError(f"synkolator_type must be one of {SYNKOLATOR_TYPES}.")
        if self.perturbation_mode not in PERTURBATION_MODES:
            raise ConfigurationError(f"perturbation_mode must be one of {PERTURBATION_MODES}.")
        if self.rih_scale <= 0.0:
            raise ConfigurationError("rih_scale must be > 0.")
        if self.metron_tau <= 0.0:
            raise ConfigurationError("metron_tau must be > 0.")
        for name in ("emotional_decay", "self_state_decay"):
            v = getattr(self, name)
            if not (0.0 <= v <= 1.0):
                raise ConfigurationError(f"{name} must be in [0, 1].")
        if self.self_state_learn_rate < 0.0:
            raise ConfigurationError("self_state_learn_rate must be >= 0.")
        if self.self_state_init_std < 0.0:
            raise ConfigurationError("self_state_init_std must be >= 0.")
        if not (0.0 <= self.param_init_span <= PARAM_MAX - 0.25):
            raise ConfigurationError("param_init_span must keep initial parameters inside [0.05, 0.95].")
        if self.log_every < 0:
            raise ConfigurationError("log_every must be >= 0.")
        if not isinstance(self.adaptation, AdaptationConfig):
            raise ConfigurationError("adaptation must be an AdaptationConfig.")
        self.adaptation.validate()

    def replace(self, **overrides: Any) -> "AgentConfig":
        """
        Create a modified copy of this config (immutable update).

        Inputs
        ------
        overrides:
            Keyword arguments mapping field names to new values.

        Outputs
        -------
        AgentConfig:
            A new config instance with the specified overrides applied.
        """
        return dc_replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Convert this configuration to a plain (JSON-serializable) dict."""
        return asdict(self)


def default_config() -> AgentConfig:
    """
    Return the default AgentConfig.

    Outputs
    -------
    AgentConfig:
        A validated config populated with the defaults defined in this module.
    """
    cfg = AgentConfig()
    cfg.validate()
    return cfg
