"""Observability helpers."""

from .logging import get_logger, log_elapsed

__all__ = ["get_logger", "log_elapsed"]
