"""Error taxonomy shared by every PolyWatch component."""

from enum import Enum


class ErrorKind(str, Enum):
    """Tagged error kinds, each carrying the HTTP status it maps to."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream_error"
    DUPLICATE = "duplicate"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.DUPLICATE: 409,
}


class PolywatchError(Exception):
    """Base exception for all PolyWatch errors."""

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str = "A PolyWatch error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputError(PolywatchError):
    """Missing or malformed caller-supplied value."""

    kind = ErrorKind.INVALID_INPUT


class NotFoundError(PolywatchError):
    """Requested record does not exist."""

    kind = ErrorKind.NOT_FOUND


class RateLimitedError(PolywatchError):
    """Upstream API signaled rate limiting."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "Polymarket API rate limited") -> None:
        super().__init__(message)


class UpstreamError(PolywatchError):
    """Timeout, transport failure or unexpected upstream response."""

    kind = ErrorKind.UPSTREAM


class DuplicateMarketError(PolywatchError):
    """A market with the same external id already exists."""

    kind = ErrorKind.DUPLICATE

    def __init__(self, external_id: str) -> None:
        self.external_id = external_id
        super().__init__(f"Market with polymarketId already exists: {external_id}")
