"""Tests for saved market endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from polywatch.data.polymarket.exceptions import MarketNotFoundError
from polywatch.interfaces.api.deps import get_repository, get_sync_service
from polywatch.interfaces.api.main import app
from polywatch.services.sync import MarketSyncService
from polywatch.storage.repository import MarketRepository


def _raw(market_id: str, question: str) -> dict:
    return {
        "id": market_id,
        "question": question,
        "outcomes": '["Yes","No"]',
        "outcomePrices": '["0.4","0.6"]',
        "volume": "1000",
        "endDate": "2026-12-31T00:00:00Z",
    }


@pytest.fixture
def mock_gamma() -> MagicMock:
    """Mock Gamma client echoing the requested ID."""
    client = MagicMock()
    client.fetch_market_by_id = AsyncMock(
        side_effect=lambda market_id: _raw(market_id, f"Question {market_id}?")
    )
    return client


@pytest.fixture
def api(repository: MarketRepository, mock_gamma: MagicMock):
    sync = MarketSyncService(repository=repository, client=mock_gamma)
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_sync_service] = lambda: sync
    yield AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_create_market(api: AsyncClient) -> None:
    """Creating a market should store the upstream title."""
    async with api as client:
        response = await client.post("/api/markets", json={"polymarketId": "101"})

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Market created successfully"
    assert body["data"]["polymarketId"] == "101"
    assert body["data"]["title"] == "Question 101?"
    assert body["data"]["outcomes"] == [
        {"label": "Yes", "price": "0.4"},
        {"label": "No", "price": "0.6"},
    ]


@pytest.mark.asyncio
async def test_create_market_requires_id(api: AsyncClient) -> None:
    async with api as client:
        response = await client.post("/api/markets", json={})

    assert response.status_code == 400
    assert response.json()["type"] == "invalid_input"


@pytest.mark.asyncio
async def test_create_market_duplicate_conflicts(api: AsyncClient) -> None:
    async with api as client:
        first = await client.post("/api/markets", json={"polymarketId": "101"})
        second = await client.post("/api/markets", json={"polymarketId": "101"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["type"] == "duplicate"


@pytest.mark.asyncio
async def test_create_market_idempotent_returns_existing(api: AsyncClient) -> None:
    async with api as client:
        first = await client.post(
            "/api/markets", params={"idempotent": "true"}, json={"polymarketId": "101"}
        )
        second = await client.post(
            "/api/markets", params={"idempotent": "true"}, json={"polymarketId": "101"}
        )

    assert first.status_code == 201
    assert first.json()["alreadyExists"] is False
    assert second.status_code == 200
    assert second.json()["alreadyExists"] is True
    assert second.json()["data"]["id"] == first.json()["data"]["id"]


@pytest.mark.asyncio
async def test_create_market_unknown_upstream_id(api: AsyncClient, mock_gamma: MagicMock) -> None:
    """An ID upstream does not know should be rejected as bad input."""
    mock_gamma.fetch_market_by_id.side_effect = MarketNotFoundError("999")

    async with api as client:
        response = await client.post("/api/markets", json={"polymarketId": "999"})

    assert response.status_code == 400
    assert "Invalid polymarketId 999" in response.json()["error"]


@pytest.mark.asyncio
async def test_list_markets_search_and_pagination(api: AsyncClient) -> None:
    async with api as client:
        for market_id in ("1", "2", "3"):
            await client.post("/api/markets", json={"polymarketId": market_id})
        response = await client.get(
            "/api/markets", params={"search": "question", "limit": "2", "sort": "title"}
        )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert [m["polymarketId"] for m in body["data"]] == ["1", "2"]


@pytest.mark.asyncio
async def test_list_markets_rejects_unknown_sort(api: AsyncClient) -> None:
    async with api as client:
        response = await client.get("/api/markets", params={"sort": "-secret"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_market(api: AsyncClient) -> None:
    async with api as client:
        created = await client.post("/api/markets", json={"polymarketId": "101"})
        market_id = created.json()["data"]["id"]
        response = await client.get(f"/api/markets/{market_id}")

    assert response.status_code == 200
    assert response.json()["data"]["polymarketId"] == "101"


@pytest.mark.asyncio
async def test_get_market_invalid_and_missing(api: AsyncClient) -> None:
    async with api as client:
        invalid = await client.get("/api/markets/abc")
        missing = await client.get("/api/markets/424242")

    assert invalid.status_code == 400
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Market not found", "type": "not_found"}


@pytest.mark.asyncio
async def test_update_market_ignores_title(api: AsyncClient) -> None:
    """Only the category should be writable after creation."""
    async with api as client:
        created = await client.post("/api/markets", json={"polymarketId": "101"})
        market_id = created.json()["data"]["id"]
        response = await client.patch(
            f"/api/markets/{market_id}", json={"title": "Renamed", "categoryId": None}
        )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Question 101?"
    assert data["categoryId"] is None


@pytest.mark.asyncio
async def test_delete_market(api: AsyncClient) -> None:
    async with api as client:
        created = await client.post("/api/markets", json={"polymarketId": "101"})
        market_id = created.json()["data"]["id"]
        deleted = await client.delete(f"/api/markets/{market_id}")
        missing = await client.get(f"/api/markets/{market_id}")

    assert deleted.status_code == 200
    assert deleted.json()["data"]["polymarketId"] == "101"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_all_markets(api: AsyncClient, repository: MarketRepository) -> None:
    async with api as client:
        for market_id in ("1", "2"):
            await client.post("/api/markets", json={"polymarketId": market_id})
        response = await client.delete("/api/markets")

    assert response.json() == {"success": True, "deleted": 2}
    assert await repository.count() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"idempotent": "true"}])
async def test_create_market_unknown_category(api: AsyncClient, params: dict) -> None:
    """An unknown category should be rejected as bad input, not as a duplicate."""
    async with api as client:
        response = await client.post(
            "/api/markets", params=params, json={"polymarketId": "5", "categoryId": 999}
        )
        listing = await client.get("/api/markets")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Unknown categoryId: 999",
        "type": "invalid_input",
    }
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_update_market_unknown_category(api: AsyncClient) -> None:
    async with api as client:
        created = await client.post("/api/markets", json={"polymarketId": "101"})
        market_id = created.json()["data"]["id"]
        response = await client.patch(f"/api/markets/{market_id}", json={"categoryId": 999})
        fetched = await client.get(f"/api/markets/{market_id}")

    assert response.status_code == 400
    assert response.json()["error"] == "Unknown categoryId: 999"
    assert fetched.json()["data"]["categoryId"] is None
