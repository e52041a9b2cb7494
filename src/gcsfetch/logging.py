"""
Logging helpers for gcsfetch.

Library modules call get_logger(__name__). Applications (and the CLI) call
setup_logging() once to attach a handler to the "gcsfetch" logger.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

ROOT_LOGGER = "gcsfetch"

_PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the gcsfetch namespace."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | None = None, json_format: bool | None = None) -> logging.Logger:
    """
    Configure the gcsfetch logger.

    Args:
        level: Log level name. Defaults to settings.log_level.
        json_format: Emit JSON lines. Defaults to settings.log_json.

    Returns:
        The configured root gcsfetch logger.
    """
    from gcsfetch.config import get_settings

    settings = get_settings()
    if level is None:
        level = settings.log_level
    if json_format is None:
        json_format = settings.log_json

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())

    # Replace our own handler on reconfiguration
    for handler in list(logger.handlers):
        if getattr(handler, "_gcsfetch", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT))
    handler._gcsfetch = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = ["get_logger", "setup_logging", "JsonFormatter", "ROOT_LOGGER"]
