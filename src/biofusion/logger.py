"""Structured logging configuration using *structlog*."""

from __future__ import annotations

import logging
import sys
from typing import Literal

import structlog

LogFormat = Literal["auto", "console", "json"]


def _renderer(fmt: LogFormat) -> structlog.typing.Processor:
    if fmt == "auto":
        fmt = "console" if sys.stderr.isatty() else "json"
    if fmt == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(level: str = "INFO", fmt: LogFormat = "auto") -> None:
    """Configure *structlog* for the CLI or a host application.

    Log lines go to stderr so that fused results printed on stdout stay
    machine-readable.  Library modules only call
    ``structlog.get_logger(__name__)`` and never configure anything.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            _renderer(fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
