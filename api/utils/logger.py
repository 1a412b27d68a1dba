"""
Structured logging configuration

The API and the worker log to the same sink; every event carries the service
name and the process mode so the two can be told apart.
"""
import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

from api.config import settings

SERVICE_NAME = "transcodeflow"


def _renderer():
    if settings.DEBUG:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(mode: str = "server") -> None:
    """
    Configure structured logging for a process running in ``mode``.

    Configuration happens once per process; later calls only rebind the mode,
    so the CLI and the component it starts can both call this.
    """
    structlog.contextvars.bind_contextvars(service=SERVICE_NAME, mode=mode)

    if structlog.is_configured():
        return

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.API_LOG_LEVEL.upper(), logging.INFO),
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
            structlog.processors.EventRenamer("message"),
            _renderer(),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
