"""
structlog configuration.

Called once when the application is created. Development gets a readable
console renderer; every other environment logs one JSON object per line.
"""

import logging
import sys

import structlog

from core.config import settings


def configure_logging(debug: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger."""
    debug = settings.DEBUG if debug is None else debug
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if debug or settings.is_development:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
