"""Logging configuration with structlog for console output."""

from __future__ import annotations

import logging
import os
import sys

import structlog

DEFAULT_LEVEL = "INFO"
LEVEL_ENV_VAR = "CMPLR_LOG_LEVEL"


def configure_logging(level: str | None = None) -> None:
    """Configure structlog to render log lines on stderr.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR). If None, read
            from `CMPLR_LOG_LEVEL`, falling back to INFO.
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, DEFAULT_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
