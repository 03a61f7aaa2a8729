"""
example_agent.py

Minimal smoke run to verify the package imports and the step loop executes.
This is not an evaluation harness; it just exercises the interfaces.
"""

import numpy as np

from syntrometry.agent import SyntrometricAgent
from syntrometry.config import AgentConfig
from syntrometry.types import EnvContext


def main() -> None:
    cfg = AgentConfig(dimensions=12, hidden_dim=32, seed=0)
    agent = SyntrometricAgent(cfg)

    for t in range(5):
        state = np.sin(np.linspace(0.0, np.pi, cfg.dimensions) + 0.2 * t)
        res = agent.step(state, [0.1, 0.2], EnvContext(reward=0.5))
        print("t=", res.t, "levels=", len(res.cascade_history), res.status)


if __name__ == "__main__":
    main()
