"""
Utilities for tracing and step event logging inside the step pipeline.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

STEP_LOGGER = logging.getLogger("syntrometry.steps")
STEP_LOGGER_START = time.perf_counter()


def log_step_event(event: str, details: dict[str, Any]) -> None:
    """Emit a JSON payload when the step logger is configured."""
    if not STEP_LOGGER.handlers:
        return
    payload = {"event": event}
    payload["timestamp"] = float(time.perf_counter() - STEP_LOGGER_START)
    payload.update(details)
    try:
        STEP_LOGGER.info(json.dumps(payload, sort_keys=True))
    except (TypeError, ValueError):
        STEP_LOGGER.info(f"{event} {details}")
