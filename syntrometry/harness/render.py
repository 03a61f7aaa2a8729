"""Text and rich renderings of step results."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from rich.columns import Columns
from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from syntrometry.types import EMOTION_NAMES, StepResult

BAR_WIDTH = 20


def format_step_line(idx: int, result: StepResult) -> str:
    flag = " [degraded]" if result.degraded else ""
    return f"[step {idx:5d}] {result.status}{flag}"


def _bar(value: float, width: int = BAR_WIDTH) -> str:
    v = float(np.clip(value, 0.0, 1.0))
    filled = int(round(v * width))
    return "█" * filled + "·" * (width - filled)


def _value_style(v: float) -> str:
    if v >= 0.5:
        return "green"
    if v > 0.0:
        return "cyan"
    if v < 0.0:
        return "red"
    return "white"


def cascade_text(history: Sequence[Sequence[float]], max_cells: int = 12) -> Text:
    text = Text()
    for level, values in enumerate(history):
        text.append(f"L{level} ", style="bold")
        if not values:
            text.append("∅\n", style="dim")
            continue
        for v in list(values)[:max_cells]:
            text.append(f"{v:+.2f} ", style=_value_style(float(v)))
        if len(values) > max_cells:
            text.append(f"… ({len(values)})", style="dim")
        text.append("\n")
    return text


def emotions_text(emotions: np.ndarray) -> Text:
    text = Text()
    for idx, value in enumerate(np.asarray(emotions, dtype=float).reshape(-1)):
        name = EMOTION_NAMES[idx] if idx < len(EMOTION_NAMES) else f"e{idx}"
        text.append(f"{name:<12}", style="bold")
        text.append(_bar(value), style="magenta")
        text.append(f" {value:.3f}\n")
    return text


def metrics_text(result: StepResult) -> Text:
    text = Text()
    rows = [
        ("coherence", result.coherence),
        ("avg affinity", result.avg_affinity),
        ("trust", result.trust),
        ("cascade var", result.cascade_variance),
        ("integration", result.integration),
        ("reflexivity", result.reflexivity),
        ("|belief|", result.belief_norm),
        ("|feedback|", result.feedback_norm),
        ("|self|", result.self_state_norm),
    ]
    for name, value in rows:
        text.append(f"{name:<14}", style="bold")
        text.append(f"{float(value):.4f}\n", style=_value_style(float(value)))
    return text


def render_dashboard(idx: int, result: StepResult) -> Group:
    header = Text()
    header.append(f"t={result.t:6d}  ", style="bold")
    header.append(f"step={idx:6d}  ", style="magenta")
    header.append(f"mood={result.dominant_emotion}  ", style="yellow")
    header.append(f"act={result.action}", style="cyan")
    if result.degraded:
        header.append(f"  {result.status}", style="bold red")

    metrics_panel = Panel(metrics_text(result), title="METRICS", border_style="white")
    cascade_panel = Panel(cascade_text(result.cascade_history), title="CASCADE", border_style="white")
    emotions_panel = Panel(emotions_text(result.emotions), title="EMOTIONS", border_style="white")
    cols = Columns([metrics_panel, cascade_panel, emotions_panel], equal=True, expand=True)
    return Group(header, cols)
