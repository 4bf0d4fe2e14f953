"""Data commands for BreakWatch CLI.

Fetches historical daily candles and shows cache and API statistics.
"""

import click
from rich.panel import Panel
from rich.table import Table

from breakwatch.cli.common import console, fail, format_volume, get_service
from breakwatch.errors import BreakwatchError


@click.command()
@click.argument("symbol")
@click.option(
    "-d", "--days",
    default=10,
    type=click.IntRange(1, 365),
    help="Number of daily candles to fetch (default: 10).",
)
def data(symbol: str, days: int) -> None:
    """Fetch and display daily candles for a symbol.

    Candles are also saved to the local store so they can be replayed
    offline with the replay data source.

    SYMBOL is the trading symbol (e.g., RELIANCE, INFY, TCS).

    \b
    Examples:
      breakwatch data RELIANCE            # Last 10 days
      breakwatch data INFY --days 30      # Last 30 days
    """
    symbol = symbol.upper()
    service = get_service()

    console.print(f"[dim]Fetching {days} day(s) of data for {symbol}...[/dim]")
    try:
        candles = service.get_historical_data(symbol, days)
    except BreakwatchError as e:
        fail(f"Failed to fetch data for {symbol}.", e)

    if not candles:
        console.print(f"[yellow]No data available for {symbol}[/yellow]")
        return

    service.store.save_candles(candles)

    table = Table(title=f"{symbol} - Daily", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("Close", justify="right")
    table.add_column("Volume", justify="right")

    for c in candles:
        color = "green" if c.close >= c.open else "red"
        table.add_row(
            c.date.isoformat(),
            f"{c.open:,.2f}",
            f"{c.high:,.2f}",
            f"{c.low:,.2f}",
            f"[{color}]{c.close:,.2f}[/{color}]",
            format_volume(c.volume),
        )

    console.print(table)
    console.print(f"[dim]{len(candles)} candle(s) saved to {service.store.db_path}[/dim]")


@click.command()
@click.option(
    "--warm",
    is_flag=True,
    default=False,
    help="Fetch the snapshot and baselines first so the stats are populated.",
)
def stats(warm: bool) -> None:
    """Show cache, snapshot, baseline and API call statistics.

    Caches live in memory, so without --warm a fresh process reports
    empty caches.
    """
    service = get_service()

    if warm:
        try:
            snapshot = service.get_nifty50_snapshot()
            service.get_baselines([row.symbol for row in snapshot.stocks])
        except BreakwatchError as e:
            fail("Failed to warm caches.", e)

    cache = service.get_historical_cache_stats()
    snap = service.get_nifty50_snapshot_stats()
    baselines = service.get_baseline_stats()
    api = service.get_api_stats()
    store = service.store.get_stats()

    last_refresh = f"{snap.last_refresh_time:%Y-%m-%d %H:%M:%S}" if snap.last_refresh_time else "never"
    console.print(Panel(
        f"[bold]Historical cache[/bold] ({cache.date.isoformat()})\n"
        f"  Entries:   {cache.size}\n"
        f"\n[bold]NIFTY 50 snapshot[/bold]\n"
        f"  Last refresh:  {last_refresh}\n"
        f"  Last fetch ok: {'yes' if snap.snapshot_fetch_success else 'no'}\n"
        f"  Fetches:       {snap.snapshot_fetch_count} "
        f"({snap.snapshot_success_count} ok, {snap.snapshot_fail_count} failed)\n"
        f"\n[bold]Baselines[/bold] ({baselines.date.isoformat()})\n"
        f"  Available: {baselines.available}\n"
        f"  Missing:   {baselines.missing}\n"
        f"\n[bold]Upstream calls[/bold]\n"
        f"  Total:      {api.total}\n"
        f"  API calls:  {api.api_calls}\n"
        f"  Cache hits: {api.cache_hits}\n"
        f"  Rate:       {api.recent_rate}/s ({len(api.last_60s)} request(s) in the last 60s)\n"
        f"\n[bold]Local store[/bold] ({service.store.db_path})\n"
        f"  Watchlist: {store.get('watchlist', 0)}\n"
        f"  Alerts:    {store.get('alerts', 0)}\n"
        f"  Candles:   {store.get('candles', 0)}",
        title="[bold]BreakWatch Stats[/bold]",
        border_style="blue",
    ))

    if api.method_breakdown:
        table = Table(title="Calls by Method", show_header=True, header_style="bold cyan")
        table.add_column("Method", style="bold")
        table.add_column("API", justify="right")
        table.add_column("Cache", justify="right")
        for method, counts in sorted(api.method_breakdown.items()):
            table.add_row(method, str(counts.api), str(counts.cache))
        console.print(table)
