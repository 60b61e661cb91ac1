"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import Processor

from .config import TravelNurseConfig


def configure_logging(config: Optional[TravelNurseConfig] = None) -> None:
    """Configure structlog for the engine.

    Console format: ConsoleRenderer for readability during development.
    JSON format: JSONRenderer for log aggregation in production.

    Args:
        config: Engine configuration (default: loaded from environment)
    """
    config = config or TravelNurseConfig()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=not config.is_production),
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
        level=getattr(logging, config.log_level),
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally named."""
    return structlog.get_logger(name)
