"""
structlog configuration.

Production emits one JSON object per line; development gets the coloured
console renderer. Every event carries the bound context variables and, when
a span is active, its trace and span ids.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from alloydb_vectorstore.config.settings import get_settings
from alloydb_vectorstore.observability.tracing import add_trace_context

# Chatty at DEBUG; only their warnings are useful here
QUIET_LOGGERS = ("asyncpg", "asyncio")


def _renderers(production: bool) -> list[Processor]:
    if production:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; LOG_LEVEL from settings if omitted

    Usage:
        setup_logging()
        structlog.get_logger(__name__).info("Rows inserted", table=table, count=10)
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        *_renderers(settings.is_production),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs) -> None:
    """Attach key/value pairs to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
