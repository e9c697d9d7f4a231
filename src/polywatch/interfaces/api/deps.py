"""FastAPI dependency injection."""

from polywatch.config.settings import Settings, load_settings
from polywatch.data.polymarket.gamma import GammaClient
from polywatch.services.sync import MarketSyncService
from polywatch.storage.cache import ExpiringCache, create_cache
from polywatch.storage.database import Database
from polywatch.storage.repository import MarketRepository

_settings: Settings | None = None
_cache: ExpiringCache | None = None
_db: Database | None = None
_gamma_client: GammaClient | None = None


async def get_settings() -> Settings:
    """Get application settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


async def get_cache() -> ExpiringCache:
    """Get the process-wide response cache."""
    global _cache
    if _cache is None:
        _cache = create_cache()
    return _cache


async def get_db() -> Database:
    """Get database connection."""
    global _db
    if _db is None:
        settings = await get_settings()
        _db = Database(settings)
    return _db


async def get_gamma_client() -> GammaClient:
    """Get the Gamma API client."""
    global _gamma_client
    if _gamma_client is None:
        settings = await get_settings()
        cache = await get_cache()
        _gamma_client = GammaClient(
            cache=cache,
            base_url=settings.upstream.base_url,
            cache_ttl=settings.upstream.cache_ttl,
            timeout=settings.upstream.timeout,
            page_delay=settings.upstream.page_delay,
            single_flight=settings.upstream.single_flight,
        )
    return _gamma_client


async def get_repository() -> MarketRepository:
    """Get the local market repository."""
    return MarketRepository(await get_db())


async def get_sync_service() -> MarketSyncService:
    """Get the market sync service."""
    return MarketSyncService(
        repository=await get_repository(),
        client=await get_gamma_client(),
    )


async def shutdown() -> None:
    """Close the HTTP client and database engine."""
    global _db, _gamma_client
    if _gamma_client is not None:
        await _gamma_client.close()
        _gamma_client = None
    if _db is not None:
        await _db.close()
        _db = None
