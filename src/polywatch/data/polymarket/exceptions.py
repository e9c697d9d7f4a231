"""Polymarket domain-specific exceptions."""

from polywatch.utils.errors import (
    InvalidInputError,
    NotFoundError,
    PolywatchError,
    RateLimitedError,
    UpstreamError,
)


class PolymarketError(PolywatchError):
    """Base exception for Polymarket-related errors."""


class PolymarketAPIError(UpstreamError, PolymarketError):
    """Exception raised when a Polymarket API call fails."""

    def __init__(
        self,
        message: str = "Polymarket API request failed",
        status_code: int | None = None,
    ) -> None:
        """Initialize the exception with API error details."""
        self.status_code = status_code
        super().__init__(message)


class PolymarketRateLimitError(RateLimitedError, PolymarketError):
    """Exception raised when the Polymarket API answers 429."""


class MarketNotFoundError(NotFoundError, PolymarketError):
    """Exception raised when a market ID does not exist upstream."""

    def __init__(self, market_id: str) -> None:
        self.market_id = market_id
        super().__init__(f"Market not found: {market_id}")


class TagNotFoundError(NotFoundError, PolymarketError):
    """Exception raised when a tag slug cannot be resolved."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Tag not found for slug: {slug}")


class InvalidExternalIdError(InvalidInputError, PolymarketError):
    """Exception raised when an external market ID cannot be registered."""

    def __init__(self, external_id: str, reason: str) -> None:
        self.external_id = external_id
        super().__init__(f"Invalid polymarketId {external_id}: {reason}")
