"""In-process response cache with per-entry expiry."""

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from polywatch.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    expires_at: float | None


class ExpiringCache:
    """Key/value store with optional per-entry TTL.

    Expired entries are dropped lazily when read. There is no background
    sweeper, so keys that are written once and never read again stay in
    memory until ``clear()`` is called.
    """

    # Key prefixes
    PREFIX_MARKET = "market"
    PREFIX_SEARCH = "search"
    PREFIX_TAG = "tag"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        """Get a value from cache, or None if missing or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                del self._store[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, replacing any previous entry for the key.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Seconds until expiry. None or 0 never expires.
        """
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._store[key] = _Entry(value=value, expires_at=expires_at)

    def clear(self, key: str | None = None) -> None:
        """Remove one key, or every entry when no key is given."""
        with self._lock:
            if key is None:
                self._store.clear()
            else:
                self._store.pop(key, None)

    def __len__(self) -> int:
        # Counts entries still held, including expired ones not yet read
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    @classmethod
    def market_key(cls, market_id: str) -> str:
        return f"{cls.PREFIX_MARKET}:{market_id}"

    @classmethod
    def search_key(cls, query: str, limit: int, offset: int) -> str:
        return f"{cls.PREFIX_SEARCH}:{query}:{limit}:{offset}"

    @classmethod
    def tag_key(cls, slug: str, limit: int) -> str:
        return f"{cls.PREFIX_TAG}:{slug}:{limit}"


class SingleFlight:
    """Collapse concurrent calls for the same key into one awaited call.

    The first caller for a key runs the factory; callers that arrive while it
    is in flight await the same future and receive its result or exception.
    The key is released as soon as the call finishes.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory`` once per key among concurrent callers."""
        existing = self._inflight.get(key)
        if existing is not None:
            logger.debug("Joining in-flight call for {}", key)
            return await asyncio.shield(existing)

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unjoined failure does not warn at GC time
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(key, None)


def create_cache() -> ExpiringCache:
    """Create a cache instance."""
    return ExpiringCache()
