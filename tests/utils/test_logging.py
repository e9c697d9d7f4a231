"""Tests for logging utilities."""

import logging

from loguru import logger

from polywatch.utils.logging import configure_logging, get_logger


def test_configure_logging_returns_logger() -> None:
    """configure_logging should return a configured logger."""
    configured = configure_logging(level="DEBUG")
    assert configured is logger


def test_get_logger_binds_name() -> None:
    """get_logger should tag records with the module name."""
    messages: list[str] = []
    sink_id = logger.add(messages.append, format="{extra[name]}:{message}")
    try:
        get_logger("polywatch.test").info("hello {}", "world")
    finally:
        logger.remove(sink_id)

    assert [m.strip() for m in messages] == ["polywatch.test:hello world"]


def test_stdlib_records_are_forwarded() -> None:
    """uvicorn log records should end up in loguru."""
    configure_logging(level="INFO")
    messages: list[str] = []
    sink_id = logger.add(messages.append, format="{level}:{message}")
    try:
        logging.getLogger("uvicorn.error").warning("server stopping")
    finally:
        logger.remove(sink_id)

    assert [m.strip() for m in messages] == ["WARNING:server stopping"]
