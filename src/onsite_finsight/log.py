# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Logging setup for OnSite FinSight.

All modules obtain their logger through ``get_logger(__name__)``. The engine
itself never configures logging; the CLI (or any embedding application) calls
``configure_logging()`` once at startup.
"""

import logging
import sys

import structlog
from structlog.types import FilteringBoundLogger

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str = "INFO", format_json: bool = False) -> None:
    """
    Configure structlog on top of the standard library logging module.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format_json: If True, render JSON lines; otherwise a console format.

    Raises:
        ValueError: if the level name is unknown.
    """
    level_name = str(level).upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(
            f"Unknown logging level {level!r}. Expected one of: {', '.join(LOG_LEVELS)}."
        )

    logging.basicConfig(
        level=getattr(logging, level_name),
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Return a structlog logger bound to ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)
