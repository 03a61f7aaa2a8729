import math

import pytest

from syntrometry.config import AdaptationConfig
from syntrometry.control.adaptation import adapt_parameters, read_param


def adapt(**overrides):
    kwargs = dict(
        trust=0.5,
        coherence=0.5,
        prev_coherence=0.5,
        cascade_variance=0.05,
        prev_cascade_variance=0.05,
        integration=0.5,
        reflexivity=0.5,
        cfg=AdaptationConfig(),
    )
    kwargs.update(overrides)
    return adapt_parameters(**kwargs)


def test_high_trust_and_coherence_exploits() -> None:
    res = adapt(trust=0.9, coherence=0.85, prev_coherence=0.8)
    assert res.rules == ("exploit",)
    assert res.integration == pytest.approx(0.506)
    assert res.reflexivity == pytest.approx(0.494)


def test_rising_coherence_with_moderate_trust_exploits() -> None:
    res = adapt(trust=0.65, coherence=0.5, prev_coherence=0.4)
    assert res.rules == ("exploit",)
    assert res.integration > 0.5 > res.reflexivity


def test_low_coherence_explores() -> None:
    res = adapt(trust=0.9, coherence=0.1, prev_coherence=0.1)
    assert res.rules == ("explore",)
    assert res.integration == pytest.approx(0.494)
    assert res.reflexivity == pytest.approx(0.5072)


def test_falling_coherence_with_middling_trust_explores() -> None:
    res = adapt(trust=0.6, coherence=0.5, prev_coherence=0.6)
    assert res.rules == ("explore",)


def test_high_variance_stacks_damping() -> None:
    res = adapt(cascade_variance=0.65, prev_cascade_variance=0.6)
    assert res.rules == ("damp_variance",)
    assert res.integration_delta == pytest.approx(0.3)
    assert res.reflexivity_delta == pytest.approx(0.02)
    assert res.integration == pytest.approx(0.5018)
    assert res.reflexivity == pytest.approx(0.50012)


def test_variance_rule_stacks_on_exploit() -> None:
    res = adapt(trust=0.9, coherence=0.9, prev_coherence=0.9, cascade_variance=0.25, prev_cascade_variance=0.25)
    assert res.rules == ("exploit", "damp_variance")
    assert res.integration_delta == pytest.approx(1.0 + 0.6 * 0.1)
    assert res.reflexivity_delta == pytest.approx(-1.0)


def test_stagnant_low_variance_unsticks() -> None:
    res = adapt(cascade_variance=0.01, prev_cascade_variance=0.01)
    assert res.rules == ("unstick",)
    assert res.integration == pytest.approx(0.5)
    assert res.reflexivity == pytest.approx(0.5018)


def test_mean_reversion_alone() -> None:
    res = adapt(integration=0.9, reflexivity=0.1)
    assert res.rules == ()
    assert res.integration_delta == pytest.approx(-0.012)
    assert res.reflexivity_delta == pytest.approx(0.012)
    assert res.integration == pytest.approx(0.9 - 0.012 * 0.006)


def test_results_are_clipped() -> None:
    cfg = AdaptationConfig(learning_rate=1.0)
    res = adapt(trust=0.9, coherence=0.9, integration=0.95, reflexivity=0.1, cfg=cfg)
    assert res.integration == pytest.approx(0.95)
    assert res.reflexivity == pytest.approx(0.05)


def test_unreadable_parameter_falls_back_to_neutral() -> None:
    assert read_param(float("nan")) == 0.5
    assert read_param("bogus") == 0.5
    assert read_param(None) == 0.5
    assert read_param(0.3) == 0.3
    res = adapt(integration=float("nan"), reflexivity=math.inf)
    assert res.integration == pytest.approx(0.5)
    assert res.reflexivity == pytest.approx(0.5)
