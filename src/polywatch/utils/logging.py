"""Structured logging configuration."""

import logging
import sys
from typing import Any

from loguru import logger

# Standard library loggers whose records are routed into loguru
_STDLIB_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
) -> Any:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        json_format: Emit one JSON object per record instead of colored text.

    Returns:
        Configured logger instance.
    """
    logger.remove()

    if json_format:
        logger.add(sys.stderr, format="{message}", level=level, serialize=True)
    else:
        log_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[name]}</cyan> | "
            "<level>{message}</level>"
        )
        logger.configure(extra={"name": "polywatch"})
        logger.add(sys.stderr, format=log_format, level=level, colorize=True)

    for name in _STDLIB_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    return logger


def get_logger(name: str) -> Any:
    """Get a logger bound to a module name.

    Args:
        name: Logger name (usually module name).
    """
    return logger.bind(name=name)
