"""Harness runner for syntrometry agents."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import numpy as np

from syntrometry.agent import SyntrometricAgent
from syntrometry.config import AgentConfig
from syntrometry.types import StepResult
from .worlds import LinearARWorld

StepCallback = Callable[[int, StepResult], None]


def run_steps(
    agent: SyntrometricAgent,
    world: LinearARWorld,
    n_steps: int,
    on_step: Optional[StepCallback] = None,
) -> List[StepResult]:
    """Drive `agent` against `world` for `n_steps` steps."""
    results: List[StepResult] = []
    world.reset()
    for idx in range(int(n_steps)):
        obs = world.step()
        result = agent.step(obs, world.graph_features(), world.env_context())
        results.append(result)
        if on_step is not None:
            on_step(idx, result)
    return results


def summarize(results: List[StepResult]) -> Dict[str, float]:
    if not results:
        return {"steps": 0.0}
    coh = np.array([r.coherence for r in results], dtype=float)
    trust = np.array([r.trust for r in results], dtype=float)
    last = results[-1]
    return {
        "steps": float(len(results)),
        "degraded": float(sum(1 for r in results if r.degraded)),
        "coherence_mean": float(np.mean(coh)),
        "coherence_std": float(np.std(coh)),
        "trust_mean": float(np.mean(trust)),
        "integration_final": float(last.integration),
        "reflexivity_final": float(last.reflexivity),
    }


def run_smoke(cfg: Optional[AgentConfig] = None, n_steps: int = 50, seed: int = 0) -> List[StepResult]:
    cfg = cfg if cfg is not None else AgentConfig(seed=seed)
    agent = SyntrometricAgent(cfg)
    world = LinearARWorld(D=cfg.dimensions, seed=seed)
    return run_steps(agent, world, n_steps)
