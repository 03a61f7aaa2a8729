"""Step computation and commit.

The step is split in two:

compute_step
    Reads the persisted AgentState into local bindings and derives every value
    of the step (perturbation, encoding, cascade, metrics, trust, parameter
    adaptation, next self-state, next emotions, action). It never mutates the
    state it is given; all intermediate arrays are locals and are dropped when
    it returns or raises. Non-finite values raise NumericInstabilityError.

commit_step
    Writes a StepOutcome into the AgentState. It performs no computation that
    can fail, so a step either commits entirely or not at all.

Step order
----------
  (a) coerce inputs, modulate + perturb the state
  (b) encode to the belief embedding; project to the cascade input
  (c) condensation cascade
  (d) coherence on the last level, affinities across adjacent levels,
      cascade variance of the last level
  (e) trust vs the memory buffer
  (f) parameter adaptation
  (g) self-state update
  (h) emotion blend
  (i) action classification
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..config import AgentConfig
from ..control.adaptation import adapt_parameters, read_param
from ..control.commitment import select_action
from ..diagnostics.metrics import (cascade_affinities, cascade_variance,
                                   mean_affinity, reflexive_integration,
                                   vector_norm)
from ..dynamics.perturbation import modulate_input, perturbation_scale
from ..errors import NumericInstabilityError
from ..memory.trust import compute_trust
from ..state.self_state import blend_emotions, update_self_state
from ..types import IDLE, AgentState, EnvContext, StepOutcome, StepResult
from .components import AgentComponents
from .logging import log_step_event


def coerce_vector(values: Any, dim: int) -> np.ndarray:
    """Pad with zeros or truncate `values` to exactly `dim` floats.

    Anything that is not a flat numeric sequence becomes zeros(dim).
    """
    if values is None:
        return np.zeros(dim, dtype=float)
    try:
        v = np.asarray(values, dtype=float).reshape(-1)
    except (TypeError, ValueError):
        return np.zeros(dim, dtype=float)
    if v.size >= dim:
        return v[:dim].copy()
    return np.concatenate([v, np.zeros(dim - v.size, dtype=float)])


def _check_finite(stage: str, *arrays: Any) -> None:
    for arr in arrays:
        a = np.asarray(arr, dtype=float)
        if a.size and not np.all(np.isfinite(a)):
            raise NumericInstabilityError(stage, f"{int(np.sum(~np.isfinite(a)))} bad values")


def compute_step(
    state: AgentState,
    components: AgentComponents,
    cfg: AgentConfig,
    raw_state: Any,
    graph_features: Any,
    env: Optional[EnvContext] = None,
) -> StepOutcome:
    """Derive every value of one step from the persisted state. Pure w.r.t. `state`."""
    env = env if env is not None else EnvContext()
    tf = components.transforms

    # Persisted values read once; nothing below writes to `state`.
    integration = read_param(state.integration, "integration")
    reflexivity = read_param(state.reflexivity, "reflexivity")
    last_coherence = float(state.last_coherence)
    self_state = np.asarray(state.self_state, dtype=float)
    prev_emotions = np.asarray(state.emotions, dtype=float)

    # (a) inputs + perturbation
    core_state = coerce_vector(raw_state, cfg.dimensions)
    features = coerce_vector(graph_features, cfg.num_graph_features)
    modulated = modulate_input(core_state, last_coherence, reflexivity)
    sigma = perturbation_scale(last_coherence, reflexivity)
    perturbed = components.perturbation.apply(modulated, sigma)

    # (b) encoding. The encoder always sees a self-state of width H.
    self_in = self_state if self_state.shape == (cfg.hidden_dim,) else np.zeros(cfg.hidden_dim)
    embedding = tf.belief_network(np.concatenate([perturbed, features, self_in]))
    _check_finite("belief_network", embedding)
    cascade_in = tf.cascade_input(embedding)
    value_estimate = float(tf.value_head(embedding)[0])
    feedback = tf.feedback_head(embedding)
    _check_finite("heads", cascade_in, feedback, value_estimate)

    # (c) cascade
    history = components.cascade.process(cascade_in)
    last_level = history[-1]

    # (d) metrics
    coherence = reflexive_integration(last_level, cfg.rih_scale)
    affinities = tuple(cascade_affinities(history))
    avg_aff = mean_affinity(affinities)
    variance = cascade_variance(last_level)

    # (e) trust
    trust = compute_trust(embedding, state.memory)
    _check_finite("metrics", coherence, avg_aff, variance, trust)

    # (f) parameter adaptation
    adapted = adapt_parameters(
        trust=trust,
        coherence=coherence,
        prev_coherence=last_coherence,
        cascade_variance=variance,
        prev_cascade_variance=float(state.last_cascade_variance),
        integration=integration,
        reflexivity=reflexivity,
        cfg=cfg.adaptation,
    )

    # (g) self-state
    next_self, was_reset = update_self_state(
        self_state,
        embedding,
        trust=trust,
        integration=integration,
        decay=cfg.self_state_decay,
        base_rate=cfg.self_state_learn_rate,
    )
    _check_finite("self_state", next_self)

    # (h) emotions
    emo_in = np.concatenate([core_state, prev_emotions, [float(env.reward), env.event_flag]])
    predicted = tf.emotional_module(emo_in)
    emotions = blend_emotions(prev_emotions, predicted, cfg.emotional_decay)
    _check_finite("emotions", emotions)

    # (i) action
    action, dominant = select_action(
        tf.action_head, coherence=coherence, avg_affinity=avg_aff, emotions=emotions
    )

    return StepOutcome(
        cascade_history=history,
        coherence=coherence,
        affinities=affinities,
        avg_affinity=avg_aff,
        cascade_variance=variance,
        trust=trust,
        embedding=embedding,
        self_state=next_self,
        self_state_reset=was_reset,
        emotions=emotions,
        action=action,
        dominant_emotion=dominant,
        integration_used=integration,
        reflexivity_used=reflexivity,
        next_integration=adapted.integration,
        next_reflexivity=adapted.reflexivity,
        belief_norm=vector_norm(embedding),
        feedback_norm=vector_norm(feedback),
        value_estimate=value_estimate,
        rules=adapted.rules,
    )


def commit_step(state: AgentState, outcome: StepOutcome) -> None:
    """Apply a computed step to the persisted state."""
    state.memory.push(outcome.embedding)
    state.latest_embedding = outcome.embedding.copy()
    state.self_state = outcome.self_state
    state.emotions = outcome.emotions
    state.integration = outcome.next_integration
    state.reflexivity = outcome.next_reflexivity
    state.last_coherence = outcome.coherence
    state.last_cascade_variance = outcome.cascade_variance
    state.latest_trust = outcome.trust
    state.latest_affinities = outcome.affinities
    state.latest_cascade_history = outcome.cascade_history
    state.t += 1


# =============================================================================
# Responses
# =============================================================================


def status_text(
    *,
    coherence: float,
    avg_affinity: float,
    trust: float,
    variance: float,
    integration: float,
    reflexivity: float,
    mood: str,
    action: str,
) -> str:
    return (
        f"R:{coherence:.2f} A:{avg_affinity:.2f} T:{trust:.2f} CV:{variance:.2f} "
        f"I:{integration:.2f} Ψ:{reflexivity:.2f} | Mood:{mood} | Act:{action}"
    )


def _history_lists(history: Sequence[np.ndarray]) -> list[list[float]]:
    return [np.asarray(level, dtype=float).tolist() for level in history]


def result_from_outcome(state: AgentState, outcome: StepOutcome) -> StepResult:
    """Build the response for a committed step. `state` is post-commit."""
    return StepResult(
        cascade_history=_history_lists(outcome.cascade_history),
        coherence=outcome.coherence,
        affinities=list(outcome.affinities),
        emotions=outcome.emotions.copy(),
        action=outcome.action,
        status=status_text(
            coherence=outcome.coherence,
            avg_affinity=outcome.avg_affinity,
            trust=outcome.trust,
            variance=outcome.cascade_variance,
            integration=outcome.integration_used,
            reflexivity=outcome.reflexivity_used,
            mood=outcome.dominant_emotion,
            action=outcome.action,
        ),
        trust=outcome.trust,
        integration=outcome.integration_used,
        reflexivity=outcome.reflexivity_used,
        belief_norm=outcome.belief_norm,
        feedback_norm=outcome.feedback_norm,
        self_state_norm=vector_norm(state.self_state),
        cascade_variance=outcome.cascade_variance,
        dominant_emotion=outcome.dominant_emotion,
        degraded=False,
        t=state.t,
        extras={
            "value": outcome.value_estimate,
            "rules": list(outcome.rules),
            "self_state_reset": outcome.self_state_reset,
        },
    )


def degraded_result(state: AgentState, reason: str) -> StepResult:
    """Response for a discarded step: previous persisted values, unchanged."""
    integration = read_param(state.integration, "integration")
    reflexivity = read_param(state.reflexivity, "reflexivity")
    affinities = list(state.latest_affinities)
    return StepResult(
        cascade_history=_history_lists(state.latest_cascade_history),
        coherence=float(state.last_coherence),
        affinities=affinities,
        emotions=np.asarray(state.emotions, dtype=float).copy(),
        action=IDLE,
        status=f"Degraded step: {reason}",
        trust=float(state.latest_trust),
        integration=integration,
        reflexivity=reflexivity,
        belief_norm=0.0,
        feedback_norm=0.0,
        self_state_norm=vector_norm(state.self_state),
        cascade_variance=float(state.last_cascade_variance),
        degraded=True,
        t=state.t,
    )


def faulted_result(state: Optional[AgentState], reason: str, emotion_dim: int) -> StepResult:
    """Response of an agent that never became ready (or faulted since)."""
    zeros = np.zeros(max(0, int(emotion_dim)), dtype=float)
    if state is None:
        return StepResult(
            cascade_history=[],
            coherence=0.0,
            affinities=[],
            emotions=zeros,
            action=IDLE,
            status=f"Faulted: {reason}",
            trust=1.0,
            integration=0.5,
            reflexivity=0.5,
            belief_norm=0.0,
            feedback_norm=0.0,
            self_state_norm=0.0,
            degraded=True,
        )
    res = degraded_result(state, reason)
    res.emotions = zeros
    res.status = f"Faulted: {reason}"
    res.self_state_norm = 0.0
    return res


def step_summary(result: StepResult) -> Dict[str, Any]:
    """Compact JSON-able summary used for step events."""
    return {
        "t": int(result.t),
        "coherence": float(result.coherence),
        "trust": float(result.trust),
        "cascade_variance": float(result.cascade_variance),
        "integration": float(result.integration),
        "reflexivity": float(result.reflexivity),
        "action": result.action,
        "degraded": bool(result.degraded),
        "levels": len(result.cascade_history),
    }


def emit_step_event(result: StepResult, cfg: AgentConfig) -> None:
    every = int(cfg.log_every)
    if result.degraded:
        log_step_event("step_degraded", step_summary(result) | {"status": result.status})
        return
    if every > 0 and result.t % every == 0:
        log_step_event("step", step_summary(result))
