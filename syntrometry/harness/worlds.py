"""Toy worlds for the harness."""

from __future__ import annotations

from typing import Optional

import numpy as np

from syntrometry.types import EnvContext


class LinearARWorld:
    """AR(1) latent state with Gaussian noise and occasional shock events.

    The observed state is the latent squashed into [-1, 1]. Two graph
    features summarize it: mean magnitude and spread. The reward favors
    calm dynamics (small step-to-step change).
    """

    def __init__(
        self,
        D: int,
        seed: int,
        rho: float = 0.9,
        noise_std: float = 0.05,
        shock_prob: float = 0.02,
        shock_std: float = 0.5,
    ):
        self.D = int(D)
        self.rho = float(rho)
        self.noise_std = float(noise_std)
        self.shock_prob = float(shock_prob)
        self.shock_std = float(shock_std)
        self.rng = np.random.default_rng(int(seed))
        self.x = self.rng.normal(size=self.D).astype(float)
        self.x_prev = self.x.copy()
        self.event: Optional[str] = None

    def reset(self) -> np.ndarray:
        self.x = self.rng.normal(size=self.D).astype(float)
        self.x_prev = self.x.copy()
        self.event = None
        return self.observe()

    def step(self) -> np.ndarray:
        self.x_prev = self.x.copy()
        noise = self.rng.normal(scale=self.noise_std, size=self.D)
        self.event = None
        if self.rng.random() < self.shock_prob:
            noise = noise + self.rng.normal(scale=self.shock_std, size=self.D)
            self.event = "shock"
        self.x = self.rho * self.x + noise
        return self.observe()

    def observe(self) -> np.ndarray:
        return np.tanh(self.x)

    def graph_features(self) -> np.ndarray:
        obs = self.observe()
        return np.array([float(np.mean(np.abs(obs))), float(np.std(obs))], dtype=float)

    def env_context(self) -> EnvContext:
        change = float(np.mean(np.abs(np.tanh(self.x) - np.tanh(self.x_prev))))
        reward = float(np.clip(1.0 - 4.0 * change, -1.0, 1.0))
        return EnvContext(event_type=self.event, reward=reward)
