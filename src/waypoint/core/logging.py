# src/waypoint/core/logging.py
"""Structured logging for Waypoint.

Waypoint logs through structlog. SQLAlchemy logs through stdlib logging;
both end up on one stdout handler whose ProcessorFormatter renders every
record with the same chain, so a JSON deployment gets JSON lines for
SQL warnings as well.

Components never reach for a global logger: each takes an optional
bound logger at construction and falls back to get_logger(__name__).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# With echo=True SQLAlchemy logs every statement and pool checkout.
_SQLALCHEMY_LOGGERS: tuple[str, ...] = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "sqlalchemy.orm",
)


def _pre_chain() -> list[Any]:
    """Processors run on every event before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(json_output: bool) -> ProcessorFormatter:
    renderer: list[Any]
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]
    return ProcessorFormatter(
        processors=[ProcessorFormatter.remove_processors_meta, *renderer],
        foreign_pre_chain=_pre_chain(),
    )


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog and stdlib logging to stdout.

    Replaces any handlers already on the root logger. SQLAlchemy loggers
    are held at WARNING, or at `level` when that is stricter.

    Args:
        json_output: Emit one JSON object per line instead of console output
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: '{level}'")

    structlog.configure(
        processors=[*_pre_chain(), ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter(json_output))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
