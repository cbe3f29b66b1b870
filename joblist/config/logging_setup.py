"""Structured logging setup shared by every runtime layer."""

from __future__ import annotations

import logging
import sys
from functools import lru_cache

import structlog

from .settings import AppSettings


def config_configure_logging(settings: AppSettings) -> None:
    """Configure stdlib logging and structlog rendering for the process.

    Args:
        settings: Validated settings providing level and renderer choice.

    Returns:
        None: Logging is configured as a process-level side effect.

    Raises:
        ValueError: Raised when settings is None.
    """

    if settings is None:
        raise ValueError("settings must not be None")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.log_format == "json":
        formatter = structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
    else:
        formatter = structlog.stdlib.ProcessorFormatter(processor=structlog.dev.ConsoleRenderer(colors=False))

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@lru_cache(maxsize=100)
def config_get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named structured logger."""

    return structlog.get_logger(name)
