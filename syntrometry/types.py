"""syntrometry/types.py

Shared data contract across syntrometry modules.

This file intentionally contains no policy logic; only types, label tables
and small constructors. Modules import these names directly, so do not rename
symbols without scanning for `from syntrometry.types import ...` call sites.

Lifetimes
---------
- AgentState: the persisted fields carried across steps. Replaced field by
  field in a single commit at the end of a successful step.
- StepOutcome: every value derived during one step. Built by the read-only
  computation, consumed by the commit, then dropped.
- StepResult: what callers receive. Always well-formed, including for
  degraded and faulted steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .memory.buffer import MemoryBuffer

# =============================================================================
# Label tables
# =============================================================================

EMOTION_NAMES: Tuple[str, ...] = ("Joy", "Fear", "Curiosity", "Frustration", "Calm", "Surprise")

ACTION_LABELS: Tuple[str, ...] = ("nod", "shake", "tilt_left", "tilt_right", "idle")
IDLE = "idle"


# =============================================================================
# Step inputs
# =============================================================================


@dataclass(frozen=True)
class EnvContext:
    """Environment context for one step.

    Fields:
      - event_type: name of the active environment event, or None.
      - reward: scalar reward signal.
    """
    event_type: Optional[str] = None
    reward: float = 0.0

    @property
    def event_flag(self) -> float:
        return 1.0 if self.event_type else 0.0


# =============================================================================
# Persisted state
# =============================================================================


@dataclass
class AgentState:
    """Everything the agent carries from one step to the next."""
    t: int
    memory: MemoryBuffer
    self_state: np.ndarray
    emotions: np.ndarray
    integration: float
    reflexivity: float
    last_coherence: float = 0.0
    last_cascade_variance: float = 0.0
    latest_trust: float = 1.0
    latest_affinities: Tuple[float, ...] = ()
    latest_cascade_history: Tuple[np.ndarray, ...] = ()
    latest_embedding: Optional[np.ndarray] = None


# =============================================================================
# Per-step values
# =============================================================================


@dataclass(frozen=True)
class StepOutcome:
    """Read-only result of one step's computation, ready to commit."""
    cascade_history: Tuple[np.ndarray, ...]
    coherence: float
    affinities: Tuple[float, ...]
    avg_affinity: float
    cascade_variance: float
    trust: float
    embedding: np.ndarray
    self_state: np.ndarray
    self_state_reset: bool
    emotions: np.ndarray
    action: str
    dominant_emotion: str
    integration_used: float
    reflexivity_used: float
    next_integration: float
    next_reflexivity: float
    belief_norm: float
    feedback_norm: float
    value_estimate: float
    rules: Tuple[str, ...] = ()


@dataclass
class StepResult:
    """Caller-facing response for one step."""
    cascade_history: List[List[float]]
    coherence: float
    affinities: List[float]
    emotions: np.ndarray
    action: str
    status: str
    trust: float
    integration: float
    reflexivity: float
    belief_norm: float
    feedback_norm: float
    self_state_norm: float
    cascade_variance: float = 0.0
    dominant_emotion: str = "Unknown"
    degraded: bool = False
    t: int = 0
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def avg_affinity(self) -> float:
        if not self.affinities:
            return 0.0
        return float(np.mean(self.affinities))
