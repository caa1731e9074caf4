"""
Structured logging configuration using structlog.

Every event carries the service name and version. The HTTP middleware binds
``request_id`` and the detection pipeline binds ``log_id`` / ``player_id``
through ``structlog.contextvars``, so a single invocation can be followed
across stages.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from anticheat import __version__
from anticheat.config import Settings, get_settings

SERVICE_NAME = "anticheat-engine"


def add_service_info(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events with the emitting service and its version."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def _select_renderer(settings: Settings) -> Processor:
    if settings.testing:
        # Captured by pytest, so no ANSI escapes
        return structlog.dev.ConsoleRenderer(colors=False)
    if settings.log_format == "json" and not settings.dev_mode:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the application.

    JSON in production, colored console output in development and plain
    console output under test.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_info,
            add_severity,
            _select_renderer(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging, so loggers must not pin the first config
        cache_logger_on_first_use=not settings.testing,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
