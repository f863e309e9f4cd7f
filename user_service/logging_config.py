"""
Logging configuration for user service.

Provides structured logging with different levels and formatters.
"""

import logging
import sys


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends ``extra_fields`` context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            context = " ".join(f"{key}={value}" for key, value in extra_fields.items())
            message = f"{message} | {context}"
        return message


def setup_logging(
    log_level: str = "INFO",
    service_name: str = "user-service",
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name of the service for log identification
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ExtraFieldsFormatter(
            fmt=f"%(asctime)s - {service_name} - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
