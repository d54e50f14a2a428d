"""Centralized logging setup with Logfire integration.

Logfire itself is configured via environment variables (LOGFIRE_TOKEN,
LOGFIRE_SERVICE_NAME, LOGFIRE_ENVIRONMENT); this module only wires structlog
and the standard library into it.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger
from structlog.typing import FilteringBoundLogger


def add_logfire_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add Logfire-specific context to log events."""
    if "error" in event_dict:
        event_dict["error_type"] = type(event_dict["error"]).__name__

    return event_dict


def setup_logging(level: int = logging.INFO, colors: bool = True) -> None:
    """Set up application-wide logging with Logfire and structlog integration.

    Args:
        level: Minimum level for both structlog and standard library loggers
        colors: Whether the console renderer emits ANSI colors
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_logfire_context,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        # Must come before the final renderer
        logfire.StructlogProcessor(),
        structlog.dev.ConsoleRenderer(colors=colors),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # PrintLogger avoids double logging with the standard library
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route standard library logs (neo4j, httpx, ...) through the same processors
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=colors),
        foreign_pre_chain=processors[:-2],  # Exclude the Logfire processor and final renderer
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger instance that's properly configured with Logfire.

    Args:
        name: The name of the logger (usually __name__)

    Returns:
        A configured structlog logger instance
    """
    return structlog.get_logger(name)
