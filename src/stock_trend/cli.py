"""Click-based CLI for stock-trend.

Thin wrapper around library modules. Zero business logic — every operation
delegates to the trend service or the price store.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from stock_trend.core import ConfigError, load_config

        try:
            ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
        except ConfigError as e:
            raise click.ClickException(f"Invalid configuration: {e}") from e
    return ctx.obj["config"]


def _resolve_symbols(symbols: str | None, symbols_file: str | None, config) -> list[str]:
    """Symbols from --symbols, else from --file, else from the configured file."""
    if symbols:
        return symbols.split(",")

    from stock_trend.core import SymbolSourceError
    from stock_trend.trends import FileSymbolSource

    path = symbols_file or config.ingestion.symbols_file
    try:
        return FileSymbolSource(path).get_symbols()
    except SymbolSourceError as e:
        raise click.UsageError(str(e)) from e


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="STOCK_TREND_CONFIG",
    default=None,
    help="Path to stock-trend.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.version_option(package_name="stock-trend")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """Stock Trend: daily price ingestion and trend lookup."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# preload
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--symbols",
    "-s",
    type=str,
    default=None,
    help="Comma-separated symbols. Overrides --file.",
)
@click.option(
    "--file",
    "-f",
    "symbols_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Symbol file, one per line. Default: ingestion.symbols_file.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format.",
)
@click.pass_context
def preload(
    ctx: click.Context,
    symbols: str | None,
    symbols_file: str | None,
    output_format: str,
) -> None:
    """Fetch and analyze every symbol that is not stored yet."""
    config = _load_config(ctx)
    symbol_list = _resolve_symbols(symbols, symbols_file, config)

    async def _run():
        from stock_trend.trends import open_service

        async with open_service(config) as service:
            with console.status(f"Preloading {len(symbol_list)} symbols..."):
                return await service.preload_all(symbol_list)

    report = _run_async(_run())

    if output_format == "json":
        click.echo(json.dumps(report.model_dump(mode="json"), indent=2))
        return

    console.print(
        f"[green]✓[/green] Preloaded {len(report.ingested)} new symbols, "
        f"{len(report.skipped)} already stored"
        + (f" ({len(report.failed)} errors)" if report.failed else "")
    )
    for name, error in report.failed.items():
        console.print(f"[red]  {name}: {error}[/red]")


# ---------------------------------------------------------------------------
# trend
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.pass_context
def trend(ctx: click.Context, symbol: str) -> None:
    """Show the current trend for SYMBOL, fetching it if needed."""
    from stock_trend.core import InvalidSymbolError

    config = _load_config(ctx)

    async def _run():
        from stock_trend.trends import open_service

        async with open_service(config) as service:
            return await service.lookup(symbol)

    try:
        result = _run_async(_run())
    except InvalidSymbolError as e:
        raise click.BadParameter(str(e), param_hint="SYMBOL") from e

    click.echo(f"Trend for {result.symbol}: {result.label}")
    if result.detail and ctx.obj["verbose"]:
        console.print(f"[yellow]{result.detail}[/yellow]")


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("symbol")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show only the newest N prices.")
@click.pass_context
def history(ctx: click.Context, symbol: str, limit: int | None) -> None:
    """Show stored prices and recorded trends for SYMBOL."""
    from stock_trend.core import InvalidSymbolError, normalize_symbol

    config = _load_config(ctx)
    try:
        name = normalize_symbol(symbol)
    except InvalidSymbolError as e:
        raise click.BadParameter(str(e), param_hint="SYMBOL") from e

    async def _run():
        from stock_trend.prices import create_store

        store = await create_store(config.storage)
        try:
            stored = await store.find_symbol(name)
            if stored is None:
                return None, [], []
            return stored, await store.get_prices(stored), await store.get_conditions(stored)
        finally:
            await store.close()

    stored, points, conditions = _run_async(_run())
    if stored is None:
        console.print(f"[yellow]{name} has not been ingested. Run 'preload' or 'trend' first.[/yellow]")
        raise SystemExit(1)

    if limit is not None:
        points = points[-limit:]

    table = Table(title=f"{name} prices")
    table.add_column("Date")
    table.add_column("Close", justify="right")
    for p in points:
        table.add_row(p.trading_date.isoformat(), str(p.price))
    console.print(table)

    if conditions:
        latest = conditions[0]
        console.print(
            f"Current trend: [bold]{latest.trend}[/bold] "
            f"(recorded {latest.observed_at:%Y-%m-%d %H:%M}, {len(conditions)} total)"
        )
    else:
        console.print("Current trend: no data")


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address. Default: api.host.")
@click.option("--port", "-p", type=int, default=None, help="Port number. Default: api.port.")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]uvicorn not installed. Install with: "
            "pip install stock-trend[api][/red]"
        )
        raise SystemExit(1)

    config = _load_config(ctx)
    host = host or config.api.host
    port = port or config.api.port

    console.print(f"Starting stock-trend API on [bold]{host}:{port}[/bold]")
    console.print(f"API docs: http://{host}:{port}/docs")

    # The app factory resolves its own config; hand it the same file
    if ctx.obj.get("config_path"):
        os.environ["STOCK_TREND_CONFIG"] = os.path.abspath(ctx.obj["config_path"])

    uvicorn.run(
        "stock_trend.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show storage status and data coverage."""
    async def _run():
        from stock_trend.prices import create_store

        config = _load_config(ctx)
        store = await create_store(config.storage)
        try:
            stats = await store.get_statistics()
        finally:
            await store.close()

        table = Table(title="Stock Trend Status")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("Storage backend", config.storage.backend.value)
        table.add_row("Database path", config.storage.sqlite_path)
        table.add_section()
        table.add_row("Symbols", str(stats["total_symbols"]))
        table.add_row("Price points", str(stats["total_prices"]))
        table.add_row(
            "Date range",
            f"{stats['earliest_price_date']} → {stats['latest_price_date']}"
            if stats["total_prices"] > 0
            else "N/A",
        )
        table.add_section()
        table.add_row("Recorded trends", str(stats["total_conditions"]))
        table.add_row("Latest observation", stats["latest_observation"] or "N/A")

        console.print(table)

    _run_async(_run())


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
