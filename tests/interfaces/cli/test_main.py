"""Tests for CLI commands."""

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from polywatch.data.polymarket.gamma import Tag, TagMarkets
from polywatch.data.polymarket.exceptions import TagNotFoundError
from polywatch.interfaces.cli.main import app
from polywatch.services.sync import SyncResult
from polywatch.storage.models import Market
from polywatch.storage.repository import MarketPage

runner = CliRunner()


def _patched(mock_context: MagicMock):
    return (
        patch("polywatch.interfaces.cli.main.get_context", return_value=mock_context),
        patch("polywatch.interfaces.cli.main.close_context", new=AsyncMock()),
    )


def test_cli_version() -> None:
    """CLI should show version."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_cli_init_db() -> None:
    mock_context = MagicMock()
    mock_context.db.create_tables = AsyncMock()

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx as close_mock:
        result = runner.invoke(app, ["init-db"])

    assert result.exit_code == 0
    assert "Tables created" in result.stdout
    mock_context.db.create_tables.assert_awaited_once()
    close_mock.assert_awaited_once()


def test_cli_sync_command() -> None:
    """CLI sync should fetch a tag and upsert its markets."""
    markets = [{"id": "1"}, {"id": "2"}]
    mock_context = MagicMock()
    mock_context.client.get_markets_by_tag = AsyncMock(
        return_value=TagMarkets(tag=Tag(id="7", slug="crypto", label="Crypto"), markets=markets)
    )
    mock_context.sync.sync_markets_to_local = AsyncMock(
        return_value=SyncResult(upserted=2, failed=0)
    )

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx:
        result = runner.invoke(app, ["sync", "crypto", "--limit", "5"])

    assert result.exit_code == 0
    assert "fetched 2" in result.stdout
    assert "synced 2" in result.stdout
    mock_context.client.get_markets_by_tag.assert_awaited_once_with("crypto", 5)
    mock_context.sync.sync_markets_to_local.assert_awaited_once_with(markets)


def test_cli_sync_unknown_tag_exits_with_error() -> None:
    mock_context = MagicMock()
    mock_context.client.get_markets_by_tag = AsyncMock(side_effect=TagNotFoundError("nope"))

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx as close_mock:
        result = runner.invoke(app, ["sync", "nope"])

    assert result.exit_code == 1
    assert "Tag not found for slug: nope" in result.stdout
    close_mock.assert_awaited_once()


def test_cli_markets_table() -> None:
    """CLI markets should render saved markets."""
    market = Market(id=1, external_id="516950", title="Will OpenAI IPO?", volume=250000.0)
    mock_context = MagicMock()
    mock_context.repository.list_markets = AsyncMock(
        return_value=MarketPage(markets=[market], total=1)
    )

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx:
        result = runner.invoke(app, ["markets", "--search", "openai"])

    assert result.exit_code == 0
    assert "516950" in result.stdout
    assert "1 total" in result.stdout
    mock_context.repository.list_markets.assert_awaited_once_with(search="openai", limit=20)


def test_cli_markets_empty() -> None:
    mock_context = MagicMock()
    mock_context.repository.list_markets = AsyncMock(return_value=MarketPage())

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx:
        result = runner.invoke(app, ["markets"])

    assert result.exit_code == 0
    assert "No markets saved" in result.stdout


def test_cli_purge_with_yes() -> None:
    mock_context = MagicMock()
    mock_context.repository.delete_all_markets = AsyncMock(return_value=3)

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx:
        result = runner.invoke(app, ["purge", "--yes"])

    assert result.exit_code == 0
    assert "Deleted 3 markets" in result.stdout


def test_cli_purge_aborts_without_confirmation() -> None:
    """Declining the prompt should leave storage untouched."""
    mock_context = MagicMock()
    mock_context.repository.delete_all_markets = AsyncMock(return_value=3)

    get_ctx, close_ctx = _patched(mock_context)
    with get_ctx, close_ctx:
        result = runner.invoke(app, ["purge"], input="n\n")

    assert result.exit_code == 1
    mock_context.repository.delete_all_markets.assert_not_called()
