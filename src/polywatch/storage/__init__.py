"""Storage module for cache and database operations."""

from polywatch.storage.cache import ExpiringCache, SingleFlight, create_cache
from polywatch.storage.database import Database
from polywatch.storage.models import Base, Category, Market, WatchlistEntry
from polywatch.storage.repository import MarketPage, MarketRepository

__all__ = [
    "Base",
    "Category",
    "Database",
    "ExpiringCache",
    "Market",
    "MarketPage",
    "MarketRepository",
    "SingleFlight",
    "WatchlistEntry",
    "create_cache",
]
