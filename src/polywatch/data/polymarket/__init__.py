"""Polymarket data module."""

from polywatch.data.polymarket.exceptions import (
    InvalidExternalIdError,
    MarketNotFoundError,
    PolymarketAPIError,
    PolymarketError,
    PolymarketRateLimitError,
    TagNotFoundError,
)
from polywatch.data.polymarket.gamma import GammaClient, Tag, TagMarkets

__all__ = [
    "GammaClient",
    "InvalidExternalIdError",
    "MarketNotFoundError",
    "PolymarketAPIError",
    "PolymarketError",
    "PolymarketRateLimitError",
    "Tag",
    "TagMarkets",
    "TagNotFoundError",
]
