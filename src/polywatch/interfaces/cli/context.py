"""CLI context management for database, cache and upstream client."""

from dataclasses import dataclass

from polywatch.config.settings import Settings, load_settings
from polywatch.data.polymarket.gamma import GammaClient
from polywatch.services.sync import MarketSyncService
from polywatch.storage.cache import create_cache
from polywatch.storage.database import Database
from polywatch.storage.repository import MarketRepository


@dataclass
class CLIContext:
    """Context holding CLI dependencies."""

    db: Database
    client: GammaClient
    repository: MarketRepository
    sync: MarketSyncService
    settings: Settings


_context: CLIContext | None = None


async def get_context() -> CLIContext:
    """Get or create CLI context with database and upstream connections."""
    global _context

    if _context is None:
        settings = load_settings()
        db = Database(settings)
        client = GammaClient(
            cache=create_cache(),
            base_url=settings.upstream.base_url,
            cache_ttl=settings.upstream.cache_ttl,
            timeout=settings.upstream.timeout,
            page_delay=settings.upstream.page_delay,
            single_flight=settings.upstream.single_flight,
        )
        repository = MarketRepository(db)
        _context = CLIContext(
            db=db,
            client=client,
            repository=repository,
            sync=MarketSyncService(repository=repository, client=client),
            settings=settings,
        )

    return _context


async def close_context() -> None:
    """Close all connections in CLI context."""
    global _context

    if _context is not None:
        await _context.client.close()
        await _context.db.close()
        _context = None
