"""Polymarket Gamma API client with cache-first reads."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from polywatch.data.polymarket.exceptions import (
    MarketNotFoundError,
    PolymarketAPIError,
    PolymarketRateLimitError,
    TagNotFoundError,
)
from polywatch.storage.cache import ExpiringCache, SingleFlight
from polywatch.utils.errors import InvalidInputError
from polywatch.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SEARCH_LIMIT_CAP = 200
TAG_PAGE_SIZE_CAP = 100
TECH_TAG_SLUG = "tech"


@dataclass(frozen=True)
class Tag:
    """Upstream tag resolved from a slug."""

    id: str
    slug: str
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "label": self.label}


@dataclass(frozen=True)
class TagMarkets:
    """Markets listed under a tag, together with the resolved tag."""

    tag: Tag
    markets: list[dict[str, Any]] = field(default_factory=list)


class GammaClient:
    """Client for the Polymarket Gamma API (market discovery and metadata).

    Every read goes through the injected cache first. Failures are mapped
    onto the PolyWatch error taxonomy; no raw httpx exception escapes and
    nothing is retried.
    """

    def __init__(
        self,
        cache: ExpiringCache,
        base_url: str = "https://gamma-api.polymarket.com",
        cache_ttl: float = 60.0,
        timeout: float = 5.0,
        page_delay: float = 0.1,
        single_flight: bool = False,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Gamma API client.

        Args:
            cache: Cache shared by all reads of this client.
            base_url: Base URL for Gamma API.
            cache_ttl: Seconds a cached response stays valid.
            timeout: Per-request timeout in seconds.
            page_delay: Pause between pages of a tag listing.
            single_flight: Let concurrent cache misses share one upstream call.
            http: Optional preconfigured HTTP client.
        """
        self.base_url = base_url
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.page_delay = page_delay
        self._flight = SingleFlight() if single_flight else None
        self._http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "GammaClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _cached(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for key, fetching and storing it on a miss."""
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit {}", key)
            return cached

        logger.debug("Cache miss {}", key)

        async def fetch_and_store() -> T:
            value = await fetch()
            self.cache.set(key, value, self.cache_ttl)
            return value

        if self._flight is not None:
            return await self._flight.do(key, fetch_and_store)
        return await fetch_and_store()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        """Issue a GET and map transport failures and 429."""
        try:
            response = await self._http.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Gamma request {} timed out", path)
            raise PolymarketAPIError(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            logger.error("Gamma request {} failed: {}", path, str(e))
            raise PolymarketAPIError(f"Request to {path} failed: {e}") from e

        if response.status_code == 429:
            logger.warning("Gamma API rate limited on {}", path)
            raise PolymarketRateLimitError()
        return response

    @staticmethod
    def _json(response: httpx.Response, what: str) -> Any:
        """Raise for HTTP errors and decode the body."""
        try:
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise PolymarketAPIError(
                f"Failed to fetch {what}: {e}", status_code=e.response.status_code
            ) from e
        except ValueError as e:
            raise PolymarketAPIError(f"Failed to decode {what}: {e}") from e

    async def fetch_market_by_id(self, market_id: str) -> dict[str, Any]:
        """Get a market by its upstream ID.

        Args:
            market_id: Gamma market ID.

        Returns:
            Raw market dictionary.

        Raises:
            InvalidInputError: If market_id is empty.
            MarketNotFoundError: If the market does not exist upstream.
            PolymarketRateLimitError: If the upstream API answers 429.
            PolymarketAPIError: On any other transport or HTTP failure.
        """
        if not market_id:
            raise InvalidInputError("Market ID is required")

        async def fetch() -> dict[str, Any]:
            response = await self._get(f"/markets/{quote(market_id, safe='')}")
            if response.status_code == 404:
                raise MarketNotFoundError(market_id)
            market = self._json(response, f"market {market_id}")
            if not isinstance(market, dict):
                raise PolymarketAPIError(f"Unexpected market payload for {market_id}")
            return market

        return await self._cached(ExpiringCache.market_key(market_id), fetch)

    async def search_markets(
        self,
        query: str = "",
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Search open markets by free text.

        Args:
            query: Search term; empty lists all open markets.
            limit: Page size, capped upstream-side at 200.
            offset: Offset for pagination.

        Returns:
            List of raw market dictionaries, empty if upstream sends a non-list.
        """

        async def fetch() -> list[dict[str, Any]]:
            params: dict[str, Any] = {
                "limit": max(min(limit, SEARCH_LIMIT_CAP), 1),
                "offset": max(offset, 0),
                "closed": "false",
            }
            if query:
                params["search"] = query
            response = await self._get("/markets", params=params)
            markets = self._json(response, "markets")
            return markets if isinstance(markets, list) else []

        return await self._cached(ExpiringCache.search_key(query, limit, offset), fetch)

    async def resolve_tag(self, slug: str) -> Tag:
        """Resolve a tag slug to its upstream tag.

        Raises:
            TagNotFoundError: If the slug is unknown or the response has no ID.
        """
        response = await self._get(f"/tags/slug/{quote(slug, safe='')}")
        if response.status_code == 404:
            raise TagNotFoundError(slug)
        tag = self._json(response, f"tag {slug}")
        if not isinstance(tag, dict) or not tag.get("id"):
            raise TagNotFoundError(slug)
        return Tag(id=str(tag["id"]), slug=tag.get("slug") or slug, label=tag.get("label"))

    async def get_markets_by_tag(
        self,
        slug: str,
        limit: int = 100,
        cancel: asyncio.Event | None = None,
    ) -> TagMarkets:
        """Get open markets under a tag, paginating until limit or end of data.

        Args:
            slug: Tag slug, e.g. "tech" or "crypto".
            limit: Maximum number of markets to return.
            cancel: Optional event; when set, pagination stops with
                asyncio.CancelledError and nothing is cached.

        Returns:
            TagMarkets with at most limit markets.
        """
        if not slug:
            raise InvalidInputError("Tag slug is required")
        if limit < 1:
            raise InvalidInputError("limit must be at least 1")

        async def fetch() -> TagMarkets:
            tag = await self.resolve_tag(slug)
            markets: list[dict[str, Any]] = []
            page_size = min(limit, TAG_PAGE_SIZE_CAP)
            offset = 0

            while len(markets) < limit:
                if cancel is not None and cancel.is_set():
                    logger.info("Tag {} pagination cancelled at offset {}", slug, offset)
                    raise asyncio.CancelledError()

                params = {
                    "tag_id": tag.id,
                    "limit": page_size,
                    "offset": offset,
                    "closed": "false",
                }
                response = await self._get("/markets", params=params)
                page = self._json(response, f"markets for tag {slug}")
                if not isinstance(page, list) or not page:
                    break

                markets.extend(page)
                if len(page) < page_size:
                    break

                offset += page_size
                await asyncio.sleep(self.page_delay)

            logger.debug("Fetched {} markets for tag {}", len(markets), slug)
            return TagMarkets(tag=tag, markets=markets[:limit])

        return await self._cached(ExpiringCache.tag_key(slug, limit), fetch)

    async def get_tech_markets(
        self,
        limit: int = 100,
        offset: int = 0,
        search: str = "",
    ) -> TagMarkets:
        """Get markets under the "tech" tag.

        ``offset`` and ``search`` are accepted for symmetry with
        search_markets but are not applied to the tag listing.
        """
        return await self.get_markets_by_tag(TECH_TAG_SLUG, limit)
