"""Endpoints for markets saved in local storage."""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from polywatch.interfaces.api.deps import get_repository, get_sync_service
from polywatch.services.sync import MarketSyncService
from polywatch.storage.repository import DEFAULT_SORT, MarketRepository
from polywatch.utils.errors import InvalidInputError
from polywatch.utils.params import require

router = APIRouter(prefix="/api/markets", tags=["markets"])


class MarketCreate(BaseModel):
    """Request to register a market."""

    model_config = ConfigDict(populate_by_name=True)

    polymarket_id: str | None = Field(default=None, alias="polymarketId")
    category_id: int | None = Field(default=None, alias="categoryId")


class MarketUpdate(BaseModel):
    """Request to update a market."""

    model_config = ConfigDict(populate_by_name=True)

    category_id: int | None = Field(default=None, alias="categoryId")


def _parse_id(market_id: str) -> int:
    try:
        return int(market_id)
    except ValueError as e:
        raise InvalidInputError(f"Invalid market ID: {market_id}") from e


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: MarketCreate,
    idempotent: bool = False,
    sync: MarketSyncService = Depends(get_sync_service),
) -> JSONResponse:
    """Register a market by Polymarket ID.

    With ``idempotent=true`` an already stored market is returned with
    status 200 instead of a 409 conflict.
    """
    external_id = require(body.polymarket_id, "polymarketId")

    if idempotent:
        market, created = await sync.register_market(external_id, body.category_id)
        return JSONResponse(
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
            content={
                "success": True,
                "alreadyExists": not created,
                "data": market.to_dict(),
            },
        )

    market = await sync.create_market(external_id, body.category_id)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "message": "Market created successfully",
            "data": market.to_dict(),
        },
    )


@router.get("")
async def list_markets(
    search: str = "",
    sort: str = DEFAULT_SORT,
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
    repository: MarketRepository = Depends(get_repository),
) -> dict:
    """List saved markets with search, sorting and pagination."""
    page = await repository.list_markets(search=search, sort=sort, limit=limit, offset=offset)
    return {
        "success": True,
        "data": [m.to_dict() for m in page.markets],
        "total": page.total,
        "limit": page.limit,
        "offset": page.offset,
    }


@router.delete("")
async def delete_all_markets(
    repository: MarketRepository = Depends(get_repository),
) -> dict:
    """Delete every saved market and its watchlist entries."""
    deleted = await repository.delete_all_markets()
    return {"success": True, "deleted": deleted}


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    repository: MarketRepository = Depends(get_repository),
) -> dict:
    """Get a saved market."""
    market = await repository.get_market(_parse_id(market_id))
    return {"success": True, "data": market.to_dict()}


@router.patch("/{market_id}")
async def update_market(
    market_id: str,
    body: MarketUpdate,
    repository: MarketRepository = Depends(get_repository),
) -> dict:
    """Re-categorize a saved market."""
    updates = body.model_dump(include=body.model_fields_set)
    market = await repository.update_market(_parse_id(market_id), updates)
    return {"success": True, "data": market.to_dict()}


@router.delete("/{market_id}")
async def delete_market(
    market_id: str,
    repository: MarketRepository = Depends(get_repository),
) -> dict:
    """Delete a saved market."""
    market = await repository.delete_market(_parse_id(market_id))
    return {"success": True, "message": "Market deleted", "data": market.to_dict()}
