"""syntrometry/memory/transforms.py

Fixed-function dense transforms: the belief encoder and its heads.

Each transform is a stack of dense layers y = act(W x + b). Weights are drawn
once at construction (Glorot-uniform, zero bias) from the agent's Generator
and never trained; they are configuration, not learned state. They are still
exported in snapshots so a restored agent reproduces the same mapping.

Stacks
------
    belief_network   D + G + H  -> 2H (relu) -> H (tanh)
    cascade_input    H          -> D (tanh)
    value_head       H          -> 1
    feedback_head    H          -> D
    emotional_module D + E + 2  -> 32 (relu) -> 16 (relu) -> E (sigmoid)
    action_head      3 + E      -> 16 (relu) -> n_actions

Dropout after the first encoder layer is inference-time
identity and is omitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..config import AgentConfig


def _relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0.0)


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 0.5 * (1.0 + np.tanh(0.5 * x))


def _linear(x: np.ndarray) -> np.ndarray:
    return x


ACTIVATIONS = {
    "relu": _relu,
    "tanh": np.tanh,
    "sigmoid": _sigmoid,
    "linear": _linear,
}


class DenseLayer:
    """y = act(W x + b) with W of shape (out, in)."""

    def __init__(self, W: np.ndarray, b: np.ndarray, activation: str = "linear") -> None:
        if activation not in ACTIVATIONS:
            raise ValueError(f"unknown activation {activation!r}")
        self.W = np.asarray(W, dtype=float)
        self.b = np.asarray(b, dtype=float).reshape(-1)
        if self.W.ndim != 2 or self.W.shape[0] != self.b.shape[0]:
            raise ValueError(f"bad layer shapes W={self.W.shape} b={self.b.shape}")
        self.activation = activation

    @classmethod
    def glorot(cls, n_in: int, n_out: int, activation: str, rng: np.random.Generator) -> "DenseLayer":
        limit = float(np.sqrt(6.0 / float(n_in + n_out)))
        W = rng.uniform(-limit, limit, size=(int(n_out), int(n_in)))
        return cls(W, np.zeros(int(n_out), dtype=float), activation)

    @property
    def n_in(self) -> int:
        return int(self.W.shape[1])

    @property
    def n_out(self) -> int:
        return int(self.W.shape[0])

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return ACTIVATIONS[self.activation](self.W @ x + self.b)


class DenseStack:
    """A named sequence of dense layers."""

    def __init__(self, name: str, layers: Sequence[DenseLayer]) -> None:
        self.name = name
        self.layers: List[DenseLayer] = list(layers)
        for prev, nxt in zip(self.layers, self.layers[1:]):
            if prev.n_out != nxt.n_in:
                raise ValueError(f"{name}: layer width mismatch {prev.n_out} -> {nxt.n_in}")

    @classmethod
    def build(
        cls,
        name: str,
        n_in: int,
        spec: Sequence[Tuple[int, str]],
        rng: np.random.Generator,
    ) -> "DenseStack":
        layers = []
        width = int(n_in)
        for units, act in spec:
            layers.append(DenseLayer.glorot(width, units, act, rng))
            width = int(units)
        return cls(name, layers)

    @property
    def n_in(self) -> int:
        return self.layers[0].n_in

    @property
    def n_out(self) -> int:
        return self.layers[-1].n_out

    def __call__(self, x) -> np.ndarray:
        h = np.asarray(x, dtype=float).reshape(-1)
        if h.size != self.n_in:
            raise ValueError(f"{self.name}: input width {h.size} != {self.n_in}")
        for layer in self.layers:
            h = layer(h)
        return h

    def get_weights(self) -> List[List]:
        """Nested-list export: [W0, b0, W1, b1, ...]."""
        out: List[List] = []
        for layer in self.layers:
            out.append(layer.W.tolist())
            out.append(layer.b.tolist())
        return out

    def set_weights(self, weights: Sequence) -> None:
        if len(weights) != 2 * len(self.layers):
            raise ValueError(f"{self.name}: expected {2 * len(self.layers)} arrays, got {len(weights)}")
        new_layers = []
        for i, layer in enumerate(self.layers):
            W = np.asarray(weights[2 * i], dtype=float)
            b = np.asarray(weights[2 * i + 1], dtype=float).reshape(-1)
            if W.shape != layer.W.shape or b.shape != layer.b.shape:
                raise ValueError(f"{self.name}: layer {i} shape mismatch")
            new_layers.append(DenseLayer(W, b, layer.activation))
        self.layers = new_layers


@dataclass
class FixedTransforms:
    belief_network: DenseStack
    cascade_input: DenseStack
    value_head: DenseStack
    feedback_head: DenseStack
    emotional_module: DenseStack
    action_head: DenseStack

    def stacks(self) -> Dict[str, DenseStack]:
        return {
            "belief_network": self.belief_network,
            "cascade_input": self.cascade_input,
            "value_head": self.value_head,
            "feedback_head": self.feedback_head,
            "emotional_module": self.emotional_module,
            "action_head": self.action_head,
        }

    def export_weights(self) -> Dict[str, List[List]]:
        return {name: stack.get_weights() for name, stack in self.stacks().items()}

    def import_weights(self, blobs: Dict[str, Sequence]) -> None:
        stacks = self.stacks()
        for name, blob in blobs.items():
            if name not in stacks:
                raise KeyError(f"unknown transform {name!r}")
            if blob is None:
                continue
            stacks[name].set_weights(blob)


def build_transforms(cfg: AgentConfig, rng: np.random.Generator, n_actions: int) -> FixedTransforms:
    D = int(cfg.dimensions)
    H = int(cfg.hidden_dim)
    E = int(cfg.emotion_dim)
    return FixedTransforms(
        belief_network=DenseStack.build("belief_network", cfg.belief_input_dim, [(2 * H, "relu"), (H, "tanh")], rng),
        cascade_input=DenseStack.build("cascade_input", H, [(D, "tanh")], rng),
        value_head=DenseStack.build("value_head", H, [(1, "linear")], rng),
        feedback_head=DenseStack.build("feedback_head", H, [(D, "linear")], rng),
        emotional_module=DenseStack.build(
            "emotional_module", cfg.emotion_input_dim, [(32, "relu"), (16, "relu"), (E, "sigmoid")], rng
        ),
        action_head=DenseStack.build("action_head", cfg.action_input_dim, [(16, "relu"), (int(n_actions), "linear")], rng),
    )
