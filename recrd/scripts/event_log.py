"""Single-line JSON progress events on stderr."""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any

LOG_LEVEL_ENV = "RECRD_LOG_LEVEL"


def configure_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    root = logging.getLogger("recrd")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.propagate = False


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    payload: dict[str, Any] = {"ts_ms": int(time.time() * 1000), "event": str(event)}
    payload.update(fields)
    logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str))
