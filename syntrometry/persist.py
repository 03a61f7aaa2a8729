"""Persistence helpers for syntrometry agents.

Checkpoints are pickled snapshot dicts (see `SyntrometricAgent.snapshot`).
Only plain data is written: lists, floats, strings and the exported
transform weights. No live objects (rng, components) are persisted.
"""

from __future__ import annotations

import logging
import pickle
from pathlib import Path

from syntrometry.agent import SyntrometricAgent
from syntrometry.errors import SnapshotError

logger = logging.getLogger(__name__)


def persist_state(agent: SyntrometricAgent, path: Path) -> None:
    """Persist a snapshot of `agent` to `path`.

    Raises SnapshotError when the agent is not ready.
    """
    snap = agent.snapshot()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fid:
        pickle.dump(snap, fid)
    logger.info("Persisted agent snapshot (t=%d) to %s", snap["t"], path)


def load_state(agent: SyntrometricAgent, path: Path) -> bool:
    """Load a persisted snapshot from `path` into `agent`.

    Returns True if loaded, False if the file does not exist. A file that
    exists but does not hold a compatible snapshot raises SnapshotError and
    leaves the agent untouched.
    """
    path = Path(path)
    if not path.exists():
        return False
    with path.open("rb") as fid:
        try:
            snap = pickle.load(fid)
        except (pickle.UnpicklingError, EOFError, ValueError) as exc:
            raise SnapshotError(f"unreadable checkpoint {path}: {exc}") from exc
    agent.restore(snap)
    logger.info("Loaded persisted snapshot from %s", path)
    return True
