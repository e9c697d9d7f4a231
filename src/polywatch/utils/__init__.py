"""Utility modules for PolyWatch."""

from polywatch.utils.errors import (
    DuplicateMarketError,
    ErrorKind,
    InvalidInputError,
    NotFoundError,
    PolywatchError,
    RateLimitedError,
    UpstreamError,
)
from polywatch.utils.logging import configure_logging, get_logger
from polywatch.utils.params import parse_int, require

__all__ = [
    "DuplicateMarketError",
    "ErrorKind",
    "InvalidInputError",
    "NotFoundError",
    "PolywatchError",
    "RateLimitedError",
    "UpstreamError",
    "configure_logging",
    "get_logger",
    "parse_int",
    "require",
]
