"""Discover command for BreakWatch CLI.

Looks for breakouts among NIFTY 50 stocks that are not on the watchlist.
"""

import click
from rich.panel import Panel
from rich.table import Table

from breakwatch.cli.common import console, fail, format_percent, get_service
from breakwatch.errors import BreakwatchError
from breakwatch.models import BreakoutDiscovery, DiscoveryReport


def _status(discovery: BreakoutDiscovery) -> str:
    if discovery.baseline_unavailable:
        return "[dim]no baseline[/dim]"
    if discovery.possible_breakout:
        return "[yellow]possible[/yellow]"
    if discovery.breakout:
        return "[bold green]BREAKOUT[/bold green]"
    if discovery.high_break:
        return "[cyan]high only[/cyan]"
    if discovery.volume_break:
        return "[cyan]volume only[/cyan]"
    return "[dim]-[/dim]"


def _display(report: DiscoveryReport, show_all: bool) -> None:
    snapshot = report.snapshot
    if snapshot.stale:
        console.print(Panel(
            f"[yellow]Snapshot refresh failed; showing data from "
            f"{snapshot.fetched_at:%H:%M:%S}. Breakouts cannot be confirmed.[/yellow]",
            title="[bold yellow]Stale Data[/bold yellow]",
            border_style="yellow",
        ))

    rows = {row.symbol: row for row in snapshot.stocks}
    discoveries = report.discoveries
    if not show_all:
        discoveries = [
            d for d in discoveries
            if d.breakout or d.possible_breakout or d.high_break or d.volume_break
        ]

    if not discoveries:
        console.print("[dim]No breakout candidates outside the watchlist.[/dim]")
    else:
        table = Table(title="NIFTY 50 Discovery", show_header=True, header_style="bold cyan")
        table.add_column("Symbol", style="bold")
        table.add_column("Name")
        table.add_column("LTP", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("High Break", justify="right")
        table.add_column("Vol Break", justify="right")
        table.add_column("Status")

        ordered = sorted(discoveries, key=lambda d: (not d.breakout, -d.high_break_percent))
        for d in ordered:
            row = rows[d.symbol]
            table.add_row(
                d.symbol,
                d.name,
                f"₹{row.last_price:,.2f}",
                format_percent(row.percent_change),
                format_percent(d.high_break_percent),
                format_percent(d.volume_break_percent),
                _status(d),
            )
        console.print(table)

    stats = report.baseline_stats
    console.print(
        f"\n[dim]Baselines: {stats.available} available, {stats.missing} missing "
        f"| Market {'open' if report.market_open else 'closed'} "
        f"| {len(report.watchlist_symbols)} watchlist symbol(s) excluded[/dim]"
    )
    if report.new_alerts:
        symbols = ", ".join(a.symbol for a in report.new_alerts)
        console.print(f"[bold green]{len(report.new_alerts)} new alert(s):[/bold green] {symbols}")


@click.command()
@click.option(
    "-a", "--all", "show_all",
    is_flag=True,
    default=False,
    help="Show every index symbol, not only candidates.",
)
def discover(show_all: bool) -> None:
    """Find NIFTY 50 breakouts outside the watchlist.

    \b
    Examples:
      breakwatch discover        # Candidates only
      breakwatch discover --all  # Every index symbol
    """
    service = get_service()

    console.print("[dim]Fetching NIFTY 50 snapshot...[/dim]")
    try:
        report = service.run_discovery_scan()
    except BreakwatchError as e:
        fail("Discovery failed.", e)

    _display(report, show_all)
