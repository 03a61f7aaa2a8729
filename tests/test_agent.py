import numpy as np
import pytest

from syntrometry.agent import Faulted, Ready, SyntrometricAgent
from syntrometry.config import AgentConfig
from syntrometry.step_pipeline import core
from syntrometry.types import ACTION_LABELS, EnvContext


def make_agent(**overrides) -> SyntrometricAgent:
    overrides.setdefault("seed", 0)
    return SyntrometricAgent(AgentConfig(**overrides))


def wave(t: int, D: int = 12) -> np.ndarray:
    return np.sin(np.linspace(0.0, np.pi, D) + 0.1 * t)


def test_agent_constructs_ready() -> None:
    agent = make_agent()
    assert agent.is_ready
    assert isinstance(agent.phase, Ready)
    assert agent.phase_name == "ready"
    assert agent.state.t == 0
    assert 0.25 <= agent.state.integration < 0.75
    assert 0.25 <= agent.state.reflexivity < 0.75
    assert agent.state.self_state.shape == (64,)
    assert np.array_equal(agent.state.emotions, np.zeros(6))
    assert agent.get_latest_belief_embedding() is None


class TestStepBounds:
    def test_outputs_stay_in_range(self) -> None:
        agent = make_agent()
        rng = np.random.default_rng(1)
        for t in range(120):
            res = agent.step(rng.uniform(-1.0, 1.0, size=12), rng.uniform(0.0, 1.0, size=2))
            assert not res.degraded
            assert 0.0 <= res.coherence <= 1.0
            assert 0.0 <= res.trust <= 1.0
            assert 0.05 <= res.integration <= 0.95
            assert 0.05 <= res.reflexivity <= 0.95
            assert all(-1.0 <= a <= 1.0 for a in res.affinities)
            assert len(res.affinities) == len(res.cascade_history) - 1
            assert 1 <= len(res.cascade_history) <= 5
            assert res.emotions.shape == (6,)
            assert np.all((res.emotions >= 0.0) & (res.emotions <= 1.0))
            assert res.action in ACTION_LABELS
            assert res.t == t + 1
            assert len(agent.state.memory) <= 15
            assert 0.05 <= agent.state.integration <= 0.95
            assert 0.05 <= agent.state.reflexivity <= 0.95

    def test_memory_fills_to_capacity(self) -> None:
        agent = make_agent(history_size=5)
        for t in range(9):
            agent.step(wave(t), [0.1, 0.2])
        assert len(agent.state.memory) == 5

    def test_first_step_has_full_trust(self) -> None:
        res = make_agent().step(wave(0), [0.0, 0.0])
        assert res.trust == pytest.approx(1.0)

    def test_status_line_format(self) -> None:
        res = make_agent().step(wave(0), [0.0, 0.0])
        assert res.status.startswith("R:")
        assert "| Mood:" in res.status
        assert res.status.endswith(f"Act:{res.action}")


def test_inputs_are_coerced_to_configured_width() -> None:
    agent = make_agent()
    for raw in ([0.1, 0.2], np.linspace(-1.0, 1.0, 30), None, "not a vector"):
        res = agent.step(raw, None)
        assert not res.degraded
        assert len(res.cascade_history[0]) == 12


def test_env_context_may_be_a_mapping() -> None:
    agent = make_agent()
    res = agent.step(wave(0), [0.0, 0.0], {"eventType": "shock", "reward": 1.0})
    assert not res.degraded
    res = agent.step(wave(1), [0.0, 0.0], EnvContext(event_type=None, reward=-0.5))
    assert not res.degraded


def test_same_seed_is_deterministic() -> None:
    a = make_agent(seed=7)
    b = make_agent(seed=7)
    for t in range(10):
        ra = a.step(wave(t), [0.2, 0.3])
        rb = b.step(wave(t), [0.2, 0.3])
        assert ra.coherence == rb.coherence
        assert ra.action == rb.action
        assert np.array_equal(ra.emotions, rb.emotions)


def test_short_state_collapses_cascade_early() -> None:
    agent = make_agent(dimensions=3, cascade_levels=4)
    res = agent.step([0.5, -0.2, 0.9], [0.0, 0.0])
    assert len(res.cascade_history) == 4
    assert res.cascade_history[-1] == []
    assert res.coherence == 0.0
    assert res.cascade_variance == 0.0


def test_average_synkolator_keeps_every_level() -> None:
    agent = make_agent(synkolator_type="average")
    res = agent.step(wave(0), [0.0, 0.0])
    assert len(res.cascade_history) == 5
    assert all(len(level) == 1 for level in res.cascade_history[1:])


def test_discrete_perturbation_mode_runs() -> None:
    agent = make_agent(perturbation_mode="discrete")
    for t in range(5):
        assert not agent.step(wave(t), [0.0, 0.0]).degraded


def test_latest_embedding_is_a_copy() -> None:
    agent = make_agent()
    agent.step(wave(0), [0.0, 0.0])
    emb = agent.get_latest_belief_embedding()
    assert emb.shape == (64,)
    emb[:] = 99.0
    assert not np.allclose(agent.get_latest_belief_embedding(), 99.0)


class TestDegradedSteps:
    def _warm(self) -> SyntrometricAgent:
        agent = make_agent()
        for t in range(3):
            agent.step(wave(t), [0.1, 0.1])
        return agent

    def test_nan_weights_discard_the_step(self) -> None:
        agent = self._warm()
        st = agent.state
        before = (st.t, len(st.memory), st.integration, st.reflexivity, st.last_coherence)
        emotions = st.emotions.copy()
        self_state = st.self_state.copy()

        agent.phase.components.transforms.belief_network.layers[0].W[:] = np.nan
        res = agent.step(wave(3), [0.1, 0.1])

        assert res.degraded
        assert res.action == "idle"
        assert res.status.startswith("Degraded step:")
        assert res.coherence == pytest.approx(before[4])
        assert res.t == before[0]
        assert (st.t, len(st.memory), st.integration, st.reflexivity, st.last_coherence) == before
        assert np.array_equal(st.emotions, emotions)
        assert np.array_equal(st.self_state, self_state)
        assert agent.is_ready

    def test_nan_input_discards_the_step(self) -> None:
        agent = self._warm()
        t_before = agent.state.t
        res = agent.step(np.full(12, np.nan), [0.0, 0.0])
        assert res.degraded
        assert agent.state.t == t_before

    def test_unexpected_error_is_contained(self, monkeypatch) -> None:
        agent = self._warm()
        t_before = agent.state.t

        def boom(*args, **kwargs):
            raise RuntimeError("trust store unavailable")

        monkeypatch.setattr("syntrometry.step_pipeline.core.compute_trust", boom)
        res = agent.step(wave(3), [0.1, 0.1])
        assert res.degraded
        assert "RuntimeError" in res.status
        assert agent.state.t == t_before
        monkeypatch.undo()
        assert not agent.step(wave(4), [0.1, 0.1]).degraded

    def test_non_finite_parameter_is_read_as_neutral(self) -> None:
        agent = self._warm()
        agent.state.integration = float("nan")
        res = agent.step(wave(3), [0.1, 0.1])
        assert not res.degraded
        assert res.integration == 0.5
        assert np.isfinite(agent.state.integration)

    def test_reentrant_step_is_rejected(self, monkeypatch) -> None:
        agent = self._warm()
        t_before = agent.state.t
        real_trust = core.compute_trust
        inner = []

        def nested_step(embedding, memory):
            inner.append((agent.phase_name, agent.step(wave(9), [0.0, 0.0])))
            return real_trust(embedding, memory)

        monkeypatch.setattr(core, "compute_trust", nested_step)
        outer = agent.step(wave(3), [0.1, 0.1])

        assert len(inner) == 1
        phase, nested = inner[0]
        assert phase == "stepping"
        assert nested.degraded
        assert "reentrant" in nested.status
        assert nested.t == t_before
        assert not outer.degraded
        assert agent.state.t == t_before + 1
        assert agent.phase_name == "ready"


def test_self_state_dimension_mismatch_resets() -> None:
    agent = make_agent()
    agent.state.self_state = np.ones(5)
    res = agent.step(wave(0), [0.0, 0.0])
    assert not res.degraded
    assert res.extras["self_state_reset"] is True
    assert agent.state.self_state.shape == (64,)
    assert np.array_equal(agent.state.self_state, np.zeros(64))
    assert res.self_state_norm == 0.0


class TestFaulted:
    def test_invalid_config_faults(self) -> None:
        agent = make_agent(dimensions=0)
        assert not agent.is_ready
        assert isinstance(agent.phase, Faulted)
        assert "dimensions" in agent.phase.reason

    def test_faulted_step_returns_fixed_response(self) -> None:
        agent = make_agent(cascade_stage=1)
        for _ in range(3):
            res = agent.step(wave(0), [0.0, 0.0])
            assert res.degraded
            assert res.status.startswith("Faulted:")
            assert res.action == "idle"
            assert np.array_equal(res.emotions, np.zeros(6))
            assert res.cascade_history == []

    def test_reset_rebuilds_state(self) -> None:
        agent = make_agent()
        for t in range(4):
            agent.step(wave(t), [0.0, 0.0])
        assert agent.reset(seed=3)
        assert agent.state.t == 0
        assert len(agent.state.memory) == 0

    @pytest.mark.parametrize("emotion_dim", [None, "abc", 0])
    def test_missing_emotion_width_still_answers(self, emotion_dim) -> None:
        agent = make_agent(emotion_dim=emotion_dim)
        assert isinstance(agent.phase, Faulted)
        for _ in range(2):
            res = agent.step(wave(0), [0.0, 0.0])
            assert res.degraded
            assert res.status.startswith("Faulted:")
            assert res.action == "idle"
            assert np.array_equal(res.emotions, np.zeros(6))

    def test_fault_after_ready_reports_last_metrics(self) -> None:
        agent = make_agent()
        for t in range(3):
            agent.step(wave(t), [0.1, 0.1])
        st = agent.state
        expected = (st.last_coherence, st.latest_trust, st.last_cascade_variance, st.t)

        agent.cfg = agent.cfg.replace(hidden_dim=0)
        assert not agent.reset()
        assert agent.state is st

        res = agent.step(wave(3), [0.1, 0.1])
        assert res.degraded
        assert res.status.startswith("Faulted:")
        assert (res.coherence, res.trust, res.cascade_variance, res.t) == expected
        assert res.cascade_history == [level.tolist() for level in st.latest_cascade_history]
        assert np.array_equal(res.emotions, np.zeros(6))
        assert res.self_state_norm == 0.0
        assert res.action == "idle"
        assert st.t == expected[3]
