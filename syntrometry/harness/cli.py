"""Command-line entry point: run an agent against a synthetic world."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.live import Live

from syntrometry.agent import SyntrometricAgent
from syntrometry.config import AgentConfig
from syntrometry.errors import ConfigurationError, SnapshotError
from syntrometry.persist import load_state, persist_state
from syntrometry.step_pipeline.logging import STEP_LOGGER
from .render import format_step_line, render_dashboard
from .runner import run_steps, summarize
from .worlds import LinearARWorld

logger = logging.getLogger(__name__)

FPS = 12


def _configure_logging(verbose: bool, log_file: Optional[Path]) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        STEP_LOGGER.addHandler(handler)
        STEP_LOGGER.setLevel(logging.INFO)
        STEP_LOGGER.propagate = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a syntrometric agent on a synthetic AR(1) world.")
    parser.add_argument("--steps", type=int, default=200, help="Number of steps to run.")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--dimensions", type=int, default=AgentConfig.dimensions)
    parser.add_argument("--hidden-dim", type=int, default=AgentConfig.hidden_dim)
    parser.add_argument("--cascade-levels", type=int, default=AgentConfig.cascade_levels)
    parser.add_argument("--synkolator", choices=["pyramidal", "average"], default="pyramidal")
    parser.add_argument("--live", action="store_true", help="Show a live rich dashboard.")
    parser.add_argument("--persist", type=Path, default=None, help="Write a snapshot here on exit.")
    parser.add_argument("--load", type=Path, default=None, help="Restore a snapshot before running.")
    parser.add_argument("--log-file", type=Path, default=None, help="JSON step-event log destination.")
    parser.add_argument("--log-every", type=int, default=0, help="Emit a step event every N steps.")
    parser.add_argument("--quiet", action="store_true", help="Do not print per-step lines.")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.log_file)

    cfg = AgentConfig(
        dimensions=args.dimensions,
        hidden_dim=args.hidden_dim,
        cascade_levels=args.cascade_levels,
        synkolator_type=args.synkolator,
        seed=args.seed,
        log_every=args.log_every,
    )
    try:
        cfg.validate()
    except ConfigurationError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 2

    agent = SyntrometricAgent(cfg)
    if not agent.is_ready:
        print(f"agent failed to initialize: {agent.phase}", file=sys.stderr)
        return 1
    if args.load is not None:
        try:
            if not load_state(agent, args.load):
                logger.warning("No snapshot at %s; starting fresh.", args.load)
        except SnapshotError as exc:
            print(f"cannot restore {args.load}: {exc}", file=sys.stderr)
            return 1

    world = LinearARWorld(D=cfg.dimensions, seed=args.seed)
    try:
        if args.live:
            with Live(screen=False, refresh_per_second=FPS, console=Console()) as live:
                results = run_steps(
                    agent, world, args.steps, on_step=lambda i, r: live.update(render_dashboard(i, r))
                )
        elif args.quiet:
            results = run_steps(agent, world, args.steps)
        else:
            results = run_steps(agent, world, args.steps, on_step=lambda i, r: print(format_step_line(i, r)))
    except KeyboardInterrupt:
        results = []
        logger.info("Interrupted.")
    finally:
        if args.persist is not None:
            persist_state(agent, args.persist)

    for key, value in summarize(results).items():
        print(f"{key}: {value:.4f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
