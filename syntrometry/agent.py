"""syntrometry/agent.py

Public agent wrapper.

This file MUST remain a thin orchestrator:
- It owns `AgentState` and the construction phase, and exposes a stable
  `step()` API.
- It performs initialization of all persisted state.
- It delegates the single authoritative step order to
  `syntrometry.step_pipeline`.

Phases
------
The agent is always in exactly one of:

  Uninitialized      before construction finished
  Ready(components)  all sub-components built; step() runs the pipeline
  Faulted(reason)    construction failed; step() returns a fixed degraded
                     response until reset() succeeds

A step in Ready either commits all of its state changes or none of them.
Any exception raised by the computation is caught here, logged, and turned
into a degraded response; the agent stays Ready.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import numpy as np

from .config import PARAM_MAX, PARAM_MIN, AgentConfig
from .diagnostics.metrics import CASCADE_VARIANCE_MAX
from .errors import NumericInstabilityError, SnapshotError
from .memory.buffer import MemoryBuffer, MemoryEntry
from .step_pipeline import (AgentComponents, build_components, commit_step,
                            compute_step, degraded_result, emit_step_event,
                            faulted_result, result_from_outcome)
from .types import EMOTION_NAMES, AgentState, EnvContext, StepResult

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "2.3.1"


# =============================================================================
# Phases
# =============================================================================


@dataclass(frozen=True)
class Uninitialized:
    name = "uninitialized"


@dataclass(frozen=True)
class Ready:
    components: AgentComponents
    name = "ready"


@dataclass(frozen=True)
class Faulted:
    reason: str
    name = "faulted"


Phase = Union[Uninitialized, Ready, Faulted]


# =============================================================================
# Helper utilities
# =============================================================================


def _fresh_state(cfg: AgentConfig, rng: np.random.Generator) -> AgentState:
    """Construct a new AgentState. Control parameters start in [0.25, 0.75)."""
    return AgentState(
        t=0,
        memory=MemoryBuffer(cfg.history_size),
        self_state=rng.normal(0.0, float(cfg.self_state_init_std), size=int(cfg.hidden_dim)),
        emotions=np.zeros(int(cfg.emotion_dim), dtype=float),
        integration=float(0.25 + rng.random() * cfg.param_init_span),
        reflexivity=float(0.25 + rng.random() * cfg.param_init_span),
    )


def _emotion_width(cfg: AgentConfig) -> int:
    """Emotion width usable for responses even when the config is invalid."""
    value = getattr(cfg, "emotion_dim", None)
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return len(EMOTION_NAMES)


def _finite_array(snap: Dict[str, Any], key: str) -> np.ndarray:
    arr = np.asarray(snap[key], dtype=float).reshape(-1)
    if not np.all(np.isfinite(arr)):
        raise SnapshotError(f"{key} contains non-finite values")
    return arr


def _finite_scalar(snap: Dict[str, Any], key: str) -> float:
    value = float(snap[key])
    if not np.isfinite(value):
        raise SnapshotError(f"{key} is not finite")
    return value


def _as_env(env: Union[EnvContext, Dict[str, Any], None]) -> EnvContext:
    if env is None:
        return EnvContext()
    if isinstance(env, EnvContext):
        return env
    return EnvContext(
        event_type=env.get("event_type", env.get("eventType")),
        reward=float(env.get("reward", 0.0) or 0.0),
    )


# =============================================================================
# Agent
# =============================================================================


class SyntrometricAgent:
    """Stateful agent wrapper. The pipeline is the authority."""

    def __init__(self, cfg: Optional[AgentConfig] = None) -> None:
        self.cfg = cfg if cfg is not None else AgentConfig()
        self.phase: Phase = Uninitialized()
        self.state: Optional[AgentState] = None
        self._stepping = False
        self.reset()

    # ── phase ────────────────────────────────────────────────────────────

    @property
    def phase_name(self) -> str:
        if self._stepping:
            return "stepping"
        return self.phase.name

    @property
    def is_ready(self) -> bool:
        return isinstance(self.phase, Ready)

    def reset(self, seed: Optional[int] = None) -> bool:
        """(Re)build components and persisted state. Returns True when Ready.

        The only way out of Faulted. On failure the previous state (if any)
        is kept so the faulted response can still report last-known metrics.
        """
        self.phase = Uninitialized()
        self._emotion_width = _emotion_width(self.cfg)
        seed = seed if seed is not None else self.cfg.seed
        try:
            rng = np.random.default_rng(seed)
            components = build_components(self.cfg, rng)
            state = _fresh_state(self.cfg, rng)
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
            logger.error("Agent construction failed: %s", reason)
            self.phase = Faulted(reason)
            return False
        self.state = state
        self.phase = Ready(components)
        logger.info(
            "Agent ready (D=%d, H=%d, E=%d, levels=%d).",
            self.cfg.dimensions,
            self.cfg.hidden_dim,
            self.cfg.emotion_dim,
            self.cfg.cascade_levels,
        )
        return True

    # ── step ─────────────────────────────────────────────────────────────

    def step(
        self,
        raw_state: Any,
        graph_features: Any = None,
        env: Union[EnvContext, Dict[str, Any], None] = None,
    ) -> StepResult:
        """Advance one step. Never raises for expected edge cases or step faults."""
        if not isinstance(self.phase, Ready):
            reason = self.phase.reason if isinstance(self.phase, Faulted) else "agent not initialized"
            return faulted_result(self.state, reason, self._emotion_width)
        if self._stepping:
            logger.error("Reentrant step() call rejected.")
            return degraded_result(self.state, "reentrant step rejected")

        state = self.state
        self._stepping = True
        try:
            try:
                outcome = compute_step(
                    state, self.phase.components, self.cfg, raw_state, graph_features, _as_env(env)
                )
            except NumericInstabilityError as exc:
                logger.warning("Step %d discarded: %s", state.t, exc)
                result = degraded_result(state, str(exc))
            except Exception as exc:
                logger.exception("Step %d failed; keeping previous state.", state.t)
                result = degraded_result(state, f"{type(exc).__name__}: {exc}")
            else:
                commit_step(state, outcome)
                result = result_from_outcome(state, outcome)
        finally:
            self._stepping = False

        emit_step_event(result, self.cfg)
        return result

    # ── accessors ────────────────────────────────────────────────────────

    def get_latest_belief_embedding(self) -> Optional[np.ndarray]:
        """A copy of the last committed belief embedding, or None."""
        if self.state is None or self.state.latest_embedding is None:
            return None
        return self.state.latest_embedding.copy()

    # ── snapshots ────────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data snapshot of all persisted fields and transform weights."""
        if not isinstance(self.phase, Ready) or self.state is None:
            raise SnapshotError("only a ready agent can be snapshotted")
        st = self.state
        return {
            "version": SNAPSHOT_VERSION,
            "timestamp": time.time(),
            "t": int(st.t),
            "config": self.cfg.to_dict(),
            "emotions": np.asarray(st.emotions, dtype=float).tolist(),
            "memory_buffer": [
                {"timestamp": float(e.timestamp), "belief_embedding": e.embedding.tolist()}
                for e in st.memory
            ],
            "last_coherence": float(st.last_coherence),
            "last_cascade_variance": float(st.last_cascade_variance),
            "latest_trust": float(st.latest_trust),
            "integration": float(st.integration),
            "reflexivity": float(st.reflexivity),
            "self_state": np.asarray(st.self_state, dtype=float).tolist(),
            "weights": self.phase.components.transforms.export_weights(),
        }

    def restore(self, snap: Dict[str, Any]) -> None:
        """Replace persisted state and weights from `snap`. All-or-nothing."""
        if not isinstance(self.phase, Ready):
            raise SnapshotError("only a ready agent can restore a snapshot")
        if not isinstance(snap, dict):
            raise SnapshotError("snapshot must be a dict")
        version = snap.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError(f"incompatible snapshot version {version!r} (expected {SNAPSHOT_VERSION})")

        cfg = self.cfg
        try:
            emotions = _finite_array(snap, "emotions")
            self_state = _finite_array(snap, "self_state")
            integration = _finite_scalar(snap, "integration")
            reflexivity = _finite_scalar(snap, "reflexivity")
            last_coherence = _finite_scalar(snap, "last_coherence")
            last_var = _finite_scalar(snap, "last_cascade_variance")
            latest_trust = _finite_scalar(snap, "latest_trust")
            t = int(snap.get("t", 0))
            raw_memory = list(snap.get("memory_buffer") or [])
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"malformed snapshot: {exc}") from exc

        if emotions.size != cfg.emotion_dim:
            raise SnapshotError(f"emotion dim {emotions.size} != {cfg.emotion_dim}")
        if self_state.size != cfg.hidden_dim:
            raise SnapshotError(f"self-state dim {self_state.size} != {cfg.hidden_dim}")

        entries = []
        for item in raw_memory:
            emb = item.get("belief_embedding") if isinstance(item, dict) else None
            if emb is None:
                continue
            try:
                vec = np.asarray(emb, dtype=float).reshape(-1)
                stamp = float(item.get("timestamp", 0.0))
            except (TypeError, ValueError) as exc:
                raise SnapshotError(f"malformed memory entry: {exc}") from exc
            if vec.size != cfg.hidden_dim:
                logger.warning("Dropping memory entry of dim %d on restore.", vec.size)
                continue
            if not np.all(np.isfinite(vec)):
                raise SnapshotError("memory entry contains non-finite values")
            entries.append(MemoryEntry(embedding=vec, timestamp=stamp))

        weights = snap.get("weights") or {}
        if not isinstance(weights, dict):
            raise SnapshotError(f"weights must be a dict, got {type(weights).__name__}")
        transforms = copy.deepcopy(self.phase.components.transforms)
        try:
            transforms.import_weights(weights)
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"weights do not match this configuration: {exc}") from exc
        for name, stack in transforms.stacks().items():
            for layer in stack.layers:
                if not (np.all(np.isfinite(layer.W)) and np.all(np.isfinite(layer.b))):
                    raise SnapshotError(f"{name} weights contain non-finite values")

        self.phase.components.transforms = transforms
        self.state = AgentState(
            t=t,
            memory=MemoryBuffer(cfg.history_size, entries[-cfg.history_size:]),
            self_state=self_state,
            emotions=np.clip(emotions, 0.0, 1.0),
            integration=float(np.clip(integration, PARAM_MIN, PARAM_MAX)),
            reflexivity=float(np.clip(reflexivity, PARAM_MIN, PARAM_MAX)),
            last_coherence=float(np.clip(last_coherence, 0.0, 1.0)),
            last_cascade_variance=float(np.clip(last_var, 0.0, CASCADE_VARIANCE_MAX)),
            latest_trust=float(np.clip(latest_trust, 0.0, 1.0)),
        )
        logger.info("Restored snapshot (t=%d, memory=%d).", self.state.t, len(self.state.memory))


__all__ = ["SyntrometricAgent", "Uninitialized", "Ready", "Faulted", "SNAPSHOT_VERSION"]
