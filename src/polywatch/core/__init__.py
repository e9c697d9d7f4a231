"""Core domain logic."""

from polywatch.core.normalizer import (
    NormalizedMarket,
    Outcome,
    normalize_market,
    normalize_markets,
    parse_array,
)

__all__ = [
    "NormalizedMarket",
    "Outcome",
    "normalize_market",
    "normalize_markets",
    "parse_array",
]
