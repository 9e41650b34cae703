from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Optional

from .config import LOG_LEVEL_ENV

_CLI_HANDLER_NAME = "zonefence-cli"


def _render_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_render_value(item) for item in value]
    return str(value)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log a structured event as a single JSON line."""
    if not logger.isEnabledFor(level):
        return
    payload = {"event": event}
    payload.update({key: _render_value(value) for key, value in fields.items()})
    logger.log(level, json.dumps(payload, sort_keys=False))


def resolve_log_level(verbose: bool, env: Optional[dict[str, str]] = None) -> int:
    if verbose:
        return logging.DEBUG
    env = env if env is not None else dict(os.environ)
    raw = (env.get(LOG_LEVEL_ENV) or "").strip().upper()
    if not raw:
        return logging.WARNING
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.WARNING


def setup_cli_logging(level: int) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    A handler left from an earlier invocation in the same process may hold a
    stream that has since been closed, so it is replaced rather than reused.
    """
    logger = logging.getLogger("zonefence")
    logger.setLevel(level)
    for existing in list(logger.handlers):
        if existing.get_name() == _CLI_HANDLER_NAME:
            logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_CLI_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
