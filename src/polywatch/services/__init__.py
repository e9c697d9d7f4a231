"""Application services."""

from polywatch.services.sync import MarketSyncService, SyncResult, transform_market

__all__ = ["MarketSyncService", "SyncResult", "transform_market"]
