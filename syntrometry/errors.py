"""Exception types raised across the syntrometry package.

Expected edge cases (short cascades, empty memory, zero norms) are returned as
values, never raised. These types cover the remaining hard-failure channels.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Missing or invalid configuration constant. Fatal at construction."""


class NumericInstabilityError(ArithmeticError):
    """A step produced NaN/Infinity. The orchestrator discards the step."""

    def __init__(self, stage: str, detail: str = "") -> None:
        self.stage = stage
        self.detail = detail
        msg = f"non-finite values after {stage}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class SnapshotError(ValueError):
    """A persisted snapshot is incompatible with the running configuration."""
