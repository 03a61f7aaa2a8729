from .components import AgentComponents, build_components  # noqa: F401
from .core import (coerce_vector, commit_step, compute_step, degraded_result,
                   emit_step_event, faulted_result, result_from_outcome)

__all__ = [
    "AgentComponents",
    "build_components",
    "coerce_vector",
    "commit_step",
    "compute_step",
    "degraded_result",
    "emit_step_event",
    "faulted_result",
    "result_from_outcome",
]
