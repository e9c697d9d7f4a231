"""Shared fixtures."""

import pytest
import pytest_asyncio

from polywatch.config.settings import Settings
from polywatch.storage.cache import ExpiringCache
from polywatch.storage.database import Database
from polywatch.storage.repository import MarketRepository


@pytest.fixture
def cache() -> ExpiringCache:
    """Fresh in-memory cache."""
    return ExpiringCache()


@pytest_asyncio.fixture
async def db(tmp_path):
    """SQLite database with all tables created."""
    database = Database(Settings(), url=f"sqlite+aiosqlite:///{tmp_path / 'polywatch.db'}")
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
def repository(db: Database) -> MarketRepository:
    """Market repository over the test database."""
    return MarketRepository(db)
