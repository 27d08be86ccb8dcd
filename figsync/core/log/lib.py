"""Logging setup for the figsync CLI and library loggers."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Client libraries that log every classifier request at INFO
CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure root logging for a CLI run.

    Args:
        level: Numeric level or level name ("DEBUG", "info", ...). Unknown
            names fall back to INFO.
        stream: Output stream.
    """
    level = _resolve_level(level)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=stream)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a named logger, `figsync` when no name is given."""
    return logging.getLogger(name or "figsync")
