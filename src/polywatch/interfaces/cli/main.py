"""PolyWatch CLI application."""

import asyncio
from collections.abc import Awaitable, Callable

import typer
from rich.console import Console
from rich.table import Table

from polywatch import __version__
from polywatch.interfaces.cli.context import close_context, get_context
from polywatch.utils.errors import PolywatchError
from polywatch.utils.logging import configure_logging

# Create Typer app
app = typer.Typer(
    name="polywatch",
    help="Prediction market watchlist backend",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"PolyWatch v{__version__}")
        raise typer.Exit()


def _run(command: Callable[[], Awaitable[None]]) -> None:
    """Run an async command, closing connections and reporting errors."""

    async def _wrapped() -> None:
        try:
            await command()
        finally:
            await close_context()

    try:
        asyncio.run(_wrapped())
    except PolywatchError as e:
        console.print(f"[bold red]Error ({e.kind.value}): {e.message}[/bold red]")
        raise typer.Exit(1)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """PolyWatch - prediction market watchlist backend."""
    pass


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address"),
    port: int | None = typer.Option(None, help="Bind port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from polywatch.config.settings import load_settings

    settings = load_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    uvicorn.run(
        "polywatch.interfaces.api.main:app",
        host=host or settings.api.host,
        port=port or settings.api.port,
        reload=reload,
    )


@app.command("init-db")
def init_db() -> None:
    """Create database tables."""

    async def _init() -> None:
        ctx = await get_context()
        await ctx.db.create_tables()
        console.print("[green]Tables created[/green]")

    _run(_init)


@app.command()
def sync(
    slug: str = typer.Argument(..., help="Tag slug, e.g. tech or crypto"),
    limit: int = typer.Option(100, "--limit", "-n", min=1, help="Markets to fetch"),
) -> None:
    """Fetch markets under a tag and upsert them into local storage."""

    async def _sync() -> None:
        ctx = await get_context()
        result = await ctx.client.get_markets_by_tag(slug, limit)
        synced = await ctx.sync.sync_markets_to_local(result.markets)
        console.print(
            f"[green]Tag {result.tag.slug}: fetched {len(result.markets)}, "
            f"synced {synced.upserted}, failed {synced.failed}[/green]"
        )

    _run(_sync)


@app.command()
def markets(
    search: str = typer.Option("", "--search", "-s", help="Title substring"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of markets to show"),
) -> None:
    """List markets in local storage."""

    async def _markets() -> None:
        ctx = await get_context()
        page = await ctx.repository.list_markets(search=search, limit=limit)

        table = Table(title=f"Saved Markets ({page.total} total)")
        table.add_column("ID", style="dim")
        table.add_column("Polymarket ID", style="cyan")
        table.add_column("Title")
        table.add_column("Volume", justify="right")

        for market in page.markets:
            table.add_row(
                str(market.id),
                market.external_id,
                market.title[:60],
                f"{market.volume:,.0f}",
            )

        console.print(table)
        if not page.markets:
            console.print("[dim]No markets saved[/dim]")

    _run(_markets)


@app.command()
def purge(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every saved market and its watchlist entries."""
    if not yes:
        typer.confirm("Delete ALL saved markets?", abort=True)

    async def _purge() -> None:
        ctx = await get_context()
        deleted = await ctx.repository.delete_all_markets()
        console.print(f"[yellow]Deleted {deleted} markets[/yellow]")

    _run(_purge)


if __name__ == "__main__":
    app()
