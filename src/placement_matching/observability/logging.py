"""Shared logging utilities for matching runs.

Usage example:
    from placement_matching.observability.logging import get_logger, log_elapsed

    logger = get_logger("placement_matching.shortlist")
    with log_elapsed(logger, "Ranking referral %s", "ref-1"):
        ranked = rank_matches(...)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def get_logger(name: str, *, level: str | None = None) -> logging.Logger:
    """Return a logger with a single UTC-stamped stream handler.

    Args:
        name: Logger name (use a stable module-qualified name).
        level: Optional level name. Applied on every call so the CLI can raise
            verbosity after a logger was first created.

    Returns:
        A non-propagating logger with one stream handler.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    if level is not None:
        logger.setLevel(_LEVELS.get(level.strip().upper(), logging.INFO))
    return logger


@contextmanager
def log_elapsed(logger: logging.Logger, message: str, *args: object) -> Iterator[None]:
    """Log ``message`` with the elapsed wall-clock milliseconds appended."""
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info(message + " (%.1fms)", *args, elapsed_ms)
