"""Endpoints that browse live markets from the Gamma API."""

from fastapi import APIRouter, Depends, Query

from polywatch.core.normalizer import normalize_market, normalize_markets
from polywatch.data.polymarket.gamma import GammaClient, TagMarkets
from polywatch.interfaces.api.deps import get_gamma_client, get_sync_service
from polywatch.services.sync import MarketSyncService
from polywatch.utils.params import parse_int, require

router = APIRouter(prefix="/api/polymarkets", tags=["polymarkets"])

# Page size caps applied before the client's own upstream caps
SEARCH_PAGE_CAP = 200
CATEGORY_PAGE_CAP = 20
TECH_PAGE_CAP = 100


def _tag_payload(result: TagMarkets) -> dict:
    return {
        "tag": result.tag.to_dict(),
        "markets": [m.to_dict() for m in normalize_markets(result.markets)],
    }


@router.get("/markets")
async def list_markets(
    search: str = "",
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    client: GammaClient = Depends(get_gamma_client),
) -> dict:
    """Search open markets with pagination."""
    limit_value = parse_int(limit, 20, name="limit", minimum=1, maximum=SEARCH_PAGE_CAP)
    offset_value = parse_int(offset, 0, name="offset", minimum=0)

    markets = await client.search_markets(search, limit_value, offset_value)
    return {
        "success": True,
        "data": [m.to_dict() for m in normalize_markets(markets)],
        "limit": limit_value,
        "offset": offset_value,
    }


@router.get("/markets/{market_id}")
async def get_market(
    market_id: str,
    client: GammaClient = Depends(get_gamma_client),
) -> dict:
    """Get a single live market by its Polymarket ID."""
    market_id = require(market_id, "Market ID")
    raw = await client.fetch_market_by_id(market_id)
    return {"success": True, "data": normalize_market(raw, fallback_id=market_id).to_dict()}


@router.get("/tech-markets")
async def get_tech_markets(
    limit: str | None = Query(default=None),
    search: str = "",
    client: GammaClient = Depends(get_gamma_client),
    sync: MarketSyncService = Depends(get_sync_service),
) -> dict:
    """Get tech markets and mirror them into local storage."""
    limit_value = parse_int(limit, 36, name="limit", minimum=1, maximum=TECH_PAGE_CAP)

    result = await client.get_tech_markets(limit_value, 0, search)
    synced = await sync.sync_markets_to_local(result.markets)
    return {
        "success": True,
        "data": _tag_payload(result),
        "synced": synced.upserted,
    }


@router.get("/categories/{slug}/markets")
async def get_markets_by_category(
    slug: str,
    limit: str | None = Query(default=None),
    client: GammaClient = Depends(get_gamma_client),
) -> dict:
    """Get open markets for a category (tag) slug."""
    slug = require(slug, "Category slug")
    limit_value = parse_int(limit, 100, name="limit", minimum=1, maximum=CATEGORY_PAGE_CAP)

    result = await client.get_markets_by_tag(slug, limit_value)
    return {"success": True, "data": _tag_payload(result)}
