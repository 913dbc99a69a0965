from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter
import structlog

from .config import LOG_LEVEL


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging using structlog."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level or LOG_LEVEL)

    handler = logging.StreamHandler()
    formatter = JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)

    # Replace existing handlers to avoid duplicate logs during reloads
    root_logger.handlers = [handler]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # Hand the event to the stdlib record so JsonFormatter emits the
            # bound key/values as JSON fields.
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
